"""
Normalizer - raw catalog entries to canonical records

Each entry is normalized on its own. A malformed entry yields a ParseError
for that entry only; callers collect the tagged results and carry on.

Creator policy: the catalog may attribute an entry to several creators. Only
the first attribution is kept and the rest are discarded (and logged at
debug level), since a game references exactly one creator.
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

import structlog

from f95rss.constants import CREATOR_POLICY
from f95rss.exceptions import ParseError

logger = structlog.get_logger("normalizer")

# "[Ren'Py] [Completed] Some Game [v0.5.1]": leading labels are dropped,
# the trailing bracket is the version
TITLE_PATTERN = re.compile(r"^(?:\[[^\[\]]*\]\s*)*(?P<title>.+?)\s+\[(?P<version>[^\[\]]+)\]\s*$")


@dataclass(frozen=True)
class CanonicalRecord:
    id: int
    title: str
    version: str
    creator: Optional[str] = None
    cover_url: Optional[str] = None
    preview_urls: Tuple[str, ...] = field(default_factory=tuple)
    tag_ids: FrozenSet[int] = field(default_factory=frozenset)
    prefix_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def display_title(self) -> str:
        return format_title(self.title, self.version)


@dataclass(frozen=True)
class NormalizeResult:
    """Tagged outcome for one raw entry: exactly one of record / error is set"""

    index: int
    record: Optional[CanonicalRecord] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def format_title(title: str, version: str) -> str:
    return f"{title} [{version}]"


def _positive_int(value, what: str, ref) -> int:
    if isinstance(value, bool):
        raise ParseError(f"{what} is not numeric", entry_ref=ref)
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise ParseError(f"{what} {value!r} is not numeric", entry_ref=ref)
    if number <= 0:
        raise ParseError(f"{what} {number} is not positive", entry_ref=ref)
    return number


def extract_id(raw: dict) -> int:
    """Explicit id field first, else the trailing segment of the permalink"""
    explicit = raw.get("id")
    link = raw.get("link")
    if explicit is not None and explicit != "":
        return _positive_int(explicit, "id", link)

    if not link or not isinstance(link, str):
        raise ParseError("Entry has neither an id nor a permalink")

    try:
        path = urlparse(link).path
    except ValueError as e:
        raise ParseError(f"Malformed permalink {link!r}", entry_ref=link) from e

    segment = path.rstrip("/").rsplit("/", 1)[-1]
    # Thread slugs look like "some-game.12345"
    candidate = segment.rsplit(".", 1)[-1]
    if not (candidate.isascii() and candidate.isdigit()):
        raise ParseError(f"No numeric id in permalink {link!r}", entry_ref=link)
    return _positive_int(candidate, "id", link)


def extract_title_version(display_title, ref=None) -> Tuple[str, str]:
    if not display_title or not isinstance(display_title, str):
        raise ParseError("Entry has no title", entry_ref=ref)

    match = TITLE_PATTERN.match(display_title.strip())
    if not match:
        raise ParseError(f"Title {display_title!r} does not match '<title> [<version>]'", entry_ref=ref)

    title = match.group("title").strip()
    version = match.group("version").strip()
    if not title or not version:
        raise ParseError(f"Title {display_title!r} has an empty title or version", entry_ref=ref)
    return title, version


def extract_creator(creators, ref=None) -> Optional[str]:
    names = [c.strip() for c in creators or [] if isinstance(c, str) and c.strip()]
    if not names:
        return None
    if len(names) > 1:
        logger.debug("Extra creators discarded", entry=ref, policy=CREATOR_POLICY, kept=names[0], discarded=len(names) - 1)
    return names[0]


def _urls(values, what: str, ref) -> Tuple[str, ...]:
    seen = []
    for value in values or []:
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            raise ParseError(f"{what} url {value!r} is not a string", entry_ref=ref)
        url = value.strip()
        if url and url not in seen:
            seen.append(url)
    return tuple(seen)


def _taxonomy(values: Iterable, what: str, ref) -> FrozenSet[int]:
    return frozenset(_positive_int(value, f"{what} id", ref) for value in values or [])


def normalize(raw) -> CanonicalRecord:
    """
    Convert one raw entry into a CanonicalRecord.

    Raises:
        ParseError: the entry is malformed; nothing about it should be stored.
    """
    if not isinstance(raw, dict):
        raise ParseError("Entry is not a mapping")

    game_id = extract_id(raw)
    title, version = extract_title_version(raw.get("title"), ref=game_id)

    cover = raw.get("cover")
    if cover is not None and not isinstance(cover, str):
        raise ParseError(f"Cover url {cover!r} is not a string", entry_ref=game_id)

    return CanonicalRecord(
        id=game_id,
        title=title,
        version=version,
        creator=extract_creator(raw.get("creators"), ref=game_id),
        cover_url=cover.strip() if cover and cover.strip() else None,
        preview_urls=_urls(raw.get("previews"), "Preview", game_id),
        tag_ids=_taxonomy(raw.get("tags"), "tag", game_id),
        prefix_ids=_taxonomy(raw.get("prefixes"), "prefix", game_id),
    )


def normalize_all(raws: Iterable) -> List[NormalizeResult]:
    """Normalize every entry, turning per-entry failures into tagged results"""
    results = []
    for index, raw in enumerate(raws):
        try:
            results.append(NormalizeResult(index=index, record=normalize(raw)))
        except ParseError as e:
            results.append(NormalizeResult(index=index, error=e))
        except Exception as e:
            # Any other failure is still scoped to this one entry
            error = ParseError(f"Unexpected {e.__class__.__name__} while normalizing entry")
            error.__cause__ = e
            results.append(NormalizeResult(index=index, error=error))
    return results
