from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, TypedDict

from farm_importer.taxonomy import (
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    DEFAULT_PLATFORM,
    DEFAULT_VERSION,
)
from .normalizer import LIST_FIELDS, as_int, as_list
from .validator import category_error

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

FALLBACK_DESCRIPTION_CHARS = 200


@dataclass(frozen=True)
class RawItem:
    """
    One playable video as returned by the playlist listing.

    Never mutated after the fetch.
    """
    video_id: str
    title: str
    description: str = ""
    channel_title: str = ""
    published_at: str = ""
    thumbnail: str = ""

    @property
    def url(self) -> str:
        return WATCH_URL.format(video_id=self.video_id)


class ExtractedRecordDict(TypedDict):
    """
    The JSON shape of one record as served by the API and checked
    against schemas/record.json.
    """
    title: str
    description: str
    category: str
    platform: List[str]
    versions: List[str]
    video_url: str
    materials: str
    optional_materials: str
    tags: List[str]
    farmable_items: List[str]
    estimated_time: Optional[int]
    required_biome: str
    farm_designer: str
    drop_rate_per_hour: str
    notes: str
    confidence: float
    needsReview: bool
    errors: List[str]


@dataclass
class ExtractedRecord:
    """
    Normalized farm metadata for one video.

    Use .to_dict() before sending to the API / Supabase.
    """
    title: str
    description: str
    category: str
    platform: List[str] = field(default_factory=list)
    versions: List[str] = field(default_factory=list)
    video_url: str = ""
    materials: str = ""
    optional_materials: str = ""
    tags: List[str] = field(default_factory=list)
    farmable_items: List[str] = field(default_factory=list)
    estimated_time: Optional[int] = None
    required_biome: str = ""
    farm_designer: str = ""
    drop_rate_per_hour: str = ""
    notes: str = ""
    confidence: float = 0.0
    needs_review: bool = False
    errors: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        # List-typed fields are always lists
        for name in LIST_FIELDS:
            setattr(self, name, as_list(getattr(self, name)))
        if not isinstance(self.errors, (list, tuple)):
            self.errors = [] if self.errors is None else [self.errors]
        self.errors = [str(e) for e in self.errors if e is not None and str(e)]

        if self.estimated_time is not None:
            self.estimated_time = as_int(self.estimated_time)

        # Clamp confidence to [0, 1]
        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            self.errors.append("Confidence was not numeric, set to 0.0.")
            self.confidence = 0.0
        else:
            self.confidence = min(max(float(self.confidence), 0.0), 1.0)

        self.needs_review = bool(self.needs_review)

        # An out-of-taxonomy category always means review
        problem = category_error(self.category)
        if problem:
            self.needs_review = True
            if problem not in self.errors:
                self.errors.append(problem)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def flag(self, message: str) -> None:
        """Record a problem and mark the record for review."""
        self.needs_review = True
        if message not in self.errors:
            self.errors.append(message)

    def to_dict(self) -> ExtractedRecordDict:
        d = asdict(self)
        d["needsReview"] = d.pop("needs_review")
        return d  # type: ignore[return-value]

    @classmethod
    def fallback(cls, item: RawItem, error: str, confidence: float) -> "ExtractedRecord":
        """
        Degraded record built straight from the video when extraction fails.
        """
        description = item.description[:FALLBACK_DESCRIPTION_CHARS] or DEFAULT_DESCRIPTION
        return cls(
            title=item.title,
            description=description,
            category=DEFAULT_CATEGORY,
            platform=[DEFAULT_PLATFORM],
            versions=[DEFAULT_VERSION],
            video_url=item.url,
            farm_designer=item.channel_title,
            confidence=confidence,
            needs_review=True,
            errors=[error or "AI analysis failed"],
        )
