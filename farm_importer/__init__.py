"""
Farm importer: YouTube playlist → GPT-extracted farm records → review → CSV / Supabase.
"""
