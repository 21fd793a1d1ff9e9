"""Bundled sample schemas."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import resources

from ..cache import SchemaCache
from ..formats import parse_schema
from ..types import DatabaseSchema, SchemaFormat


@dataclass(frozen=True, slots=True)
class Sample:
    key: str
    name: str
    format: SchemaFormat
    filename: str


SAMPLES: tuple[Sample, ...] = (
    Sample("retailer", "Retailer", "sql", "retailer.sql"),
    Sample("blog_platform", "Blog Platform", "sql", "blog_platform.sql"),
    Sample("university", "University", "mermaid", "university.mmd"),
)


def sample_text(key: str) -> str:
    sample = _sample(key)
    return resources.files(__package__).joinpath(sample.filename).read_text(encoding="utf-8")


def load_sample(key: str, cache: SchemaCache | None = None) -> DatabaseSchema:
    """Parse a bundled sample; raises RuntimeError if it does not parse."""
    sample = _sample(key)
    text = sample_text(key)
    if cache is not None:
        schema = cache.parse(text, sample.format, sample.name)
    else:
        schema = parse_schema(text, sample.format, sample.name)
    if schema is None:
        raise RuntimeError(f"Failed to parse sample schema {key!r}")
    return schema


def _sample(key: str) -> Sample:
    for sample in SAMPLES:
        if sample.key == key:
            return sample
    raise KeyError(f"Unknown sample {key!r}; expected one of {', '.join(s.key for s in SAMPLES)}")
