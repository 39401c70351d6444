"""
Fixed vocabularies used to validate extracted farm records.

Nothing here talks to the network. Keep the lists in sync with the
category pages on the site: a record whose category is not listed here
is always flagged for review.
"""

from __future__ import annotations

FARM_CATEGORIES = (
    "Mob Farm",
    "Iron Farm",
    "Gold Farm",
    "XP Farm",
    "Crop Farm",
    "Tree Farm",
    "Animal Farm",
    "Raid Farm",
    "Villager Trading Hall",
    "Villager Breeder",
    "Sugar Cane Farm",
    "Bamboo Farm",
    "Kelp Farm",
    "Cactus Farm",
    "Pumpkin & Melon Farm",
    "Wool Farm",
    "Slime Farm",
    "Creeper Farm",
    "Guardian Farm",
    "Blaze Farm",
    "Wither Skeleton Farm",
    "Enderman Farm",
    "Shulker Farm",
    "Piglin Bartering Farm",
    "Witch Farm",
    "Drowned Farm",
    "Honey Farm",
    "Flower Farm",
    "Concrete Converter",
    "Item Sorter",
    "Storage System",
    "Other",
)

PLATFORMS = ("Java", "Bedrock")

COMMON_VERSIONS = (
    "1.21", "1.20.6", "1.20.5", "1.20.4", "1.20.3", "1.20.2", "1.20.1", "1.20",
    "1.19.4", "1.19.3", "1.19.2", "1.19.1", "1.19",
    "1.18.2", "1.18.1", "1.18",
    "1.17.1", "1.17",
    "1.16.5", "1.16.4", "1.16.3", "1.16.2", "1.16.1", "1.16",
)

# Guesses used when nothing better is known about a video
DEFAULT_CATEGORY = "Mob Farm"
DEFAULT_PLATFORM = "Java"
DEFAULT_VERSION = COMMON_VERSIONS[0]
DEFAULT_DESCRIPTION = "Minecraft farm tutorial"


def is_valid_category(category: object) -> bool:
    """Exact, case-sensitive membership test."""
    return isinstance(category, str) and category in FARM_CATEGORIES
