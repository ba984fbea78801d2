"""
In-memory source tables for a mapping run.

The source API returns every column as text, so all cells are held as
``Optional[str]``. Values are normalized once, here, so the mappers can rely
on ``None`` being the only representation of NULL.
"""

import csv
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .constants import HIERARCHY_TABLES, SPECIES_TABLE, CodeListName

logger = logging.getLogger(__name__)

Row = dict[str, Optional[str]]
CodeListSource = Union["CodeList", Mapping[str, Any], Iterable[Mapping[str, Any]]]


class MissingCodeListError(KeyError):
    """A vocabulary required by the rule set was not supplied."""

    def __init__(self, names: Iterable[str]):
        self.names = sorted(names)
        super().__init__(f"Missing code list(s): {', '.join(self.names)}")

    def __str__(self) -> str:
        return self.args[0]


def normalize_cell(value: Any) -> Optional[str]:
    """
    Normalize a single cell to text or None.

    Handles:
    - numpy scalars (via .item())
    - NaN/Inf floats and blank strings (NULL); other text is kept verbatim
    - integral floats, rendered without the trailing ``.0``
    """
    if value is None:
        return None

    if hasattr(value, "item") and not isinstance(value, str):
        value = value.item()

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)

    text = str(value)
    return text if text.strip() else None


def normalize_row(row: Mapping[str, Any]) -> Row:
    """Normalize every cell of a row."""
    return {str(column): normalize_cell(value) for column, value in row.items()}


@dataclass(frozen=True)
class CodeList:
    """
    A controlled vocabulary: Key -> Description.

    A NULL key never matches, mirroring SQL join semantics.
    """

    name: str
    entries: dict[str, Optional[str]] = field(default_factory=dict)

    @classmethod
    def from_rows(
        cls,
        name: str,
        rows: Iterable[Mapping[str, Any]],
        key_column: str = "Key",
        description_column: str = "Description",
    ) -> "CodeList":
        """Build a code list from rows carrying Key and Description columns."""
        entries: dict[str, Optional[str]] = {}
        for row in rows:
            key = normalize_cell(row.get(key_column))
            if key is None:
                continue
            # First definition wins
            entries.setdefault(key, normalize_cell(row.get(description_column)))
        return cls(name=name, entries=entries)

    @classmethod
    def from_mapping(cls, name: str, mapping: Mapping[str, Any]) -> "CodeList":
        """Build a code list from a plain Key -> Description mapping."""
        entries: dict[str, Optional[str]] = {}
        for key, description in mapping.items():
            normalized_key = normalize_cell(key)
            if normalized_key is not None:
                entries.setdefault(normalized_key, normalize_cell(description))
        return cls(name=name, entries=entries)

    def matches(self, key: Optional[str]) -> bool:
        """Whether the key resolves to an entry of this vocabulary."""
        return key is not None and key in self.entries

    def describe(self, key: Optional[str]) -> Optional[str]:
        """Description for a key, or None when unmatched."""
        if key is None:
            return None
        return self.entries.get(key)

    def __len__(self) -> int:
        return len(self.entries)


def _coerce_code_list(name: str, source: CodeListSource) -> CodeList:
    if isinstance(source, CodeList):
        return source
    if isinstance(source, Mapping):
        return CodeList.from_mapping(name, source)
    return CodeList.from_rows(name, source)


@dataclass
class SourceTables:
    """
    The pre-loaded tables a mapping run reads.

    Attributes:
        campaigns: Campaign rows (already filtered to public campaigns)
        samples: Sample rows
        positions: Position rows
        observations: Observation rows
        species: Species reference rows (euring_code, euring_scientific_name, aphia_id)
        code_lists: Vocabulary name -> CodeList
    """

    campaigns: list[Row] = field(default_factory=list)
    samples: list[Row] = field(default_factory=list)
    positions: list[Row] = field(default_factory=list)
    observations: list[Row] = field(default_factory=list)
    species: list[Row] = field(default_factory=list)
    code_lists: dict[str, CodeList] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        campaigns: Iterable[Mapping[str, Any]] = (),
        samples: Iterable[Mapping[str, Any]] = (),
        positions: Iterable[Mapping[str, Any]] = (),
        observations: Iterable[Mapping[str, Any]] = (),
        species: Iterable[Mapping[str, Any]] = (),
        code_lists: Optional[Mapping[str, CodeListSource]] = None,
    ) -> "SourceTables":
        """
        Build tables from raw records, normalizing every cell.

        Code lists may be given as CodeList instances, Key -> Description
        mappings, or iterables of rows with Key and Description columns.
        """
        return cls(
            campaigns=[normalize_row(r) for r in campaigns],
            samples=[normalize_row(r) for r in samples],
            positions=[normalize_row(r) for r in positions],
            observations=[normalize_row(r) for r in observations],
            species=[normalize_row(r) for r in species],
            code_lists={
                name: _coerce_code_list(name, source)
                for name, source in (code_lists or {}).items()
            },
        )

    def code_list(self, name: Union[str, CodeListName]) -> CodeList:
        """
        Get a vocabulary by name.

        Raises:
            MissingCodeListError: If the vocabulary was not supplied
        """
        key = name.value if isinstance(name, CodeListName) else name
        try:
            return self.code_lists[key]
        except KeyError:
            raise MissingCodeListError([key]) from None

    def require_code_lists(self, names: Iterable[Union[str, CodeListName]]) -> None:
        """Raise MissingCodeListError naming every absent vocabulary."""
        wanted = {n.value if isinstance(n, CodeListName) else n for n in names}
        missing = wanted - set(self.code_lists)
        if missing:
            raise MissingCodeListError(missing)

    @property
    def row_counts(self) -> dict[str, int]:
        """Number of rows per source table."""
        return {
            "campaigns": len(self.campaigns),
            "samples": len(self.samples),
            "positions": len(self.positions),
            "observations": len(self.observations),
            "species": len(self.species),
        }


def load_tables(directory: Union[str, Path], delimiter: str = ",") -> SourceTables:
    """
    Load source tables from a directory of delimited files.

    Expects campaigns.csv, samples.csv, positions.csv and observations.csv.
    species.csv is optional. Each vocabulary is read from ``vocab/<name>.csv``
    or ``<name>.csv``; absent vocabularies are left out and reported by the
    converter before mapping starts.

    Raises:
        FileNotFoundError: If the directory or a hierarchy table is missing
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Input directory not found: {directory}")

    def read(path: Path) -> list[dict[str, Any]]:
        with open(path, newline="", encoding="utf-8-sig") as f:
            return list(csv.DictReader(f, delimiter=delimiter))

    tables: dict[str, list[dict[str, Any]]] = {}
    for name in HIERARCHY_TABLES:
        path = directory / f"{name}.csv"
        if not path.exists():
            raise FileNotFoundError(f"Required table not found: {path}")
        tables[name] = read(path)

    species_path = directory / f"{SPECIES_TABLE}.csv"
    species = read(species_path) if species_path.exists() else []
    if not species:
        logger.warning(f"No species reference rows loaded from {directory}")

    code_lists: dict[str, list[dict[str, Any]]] = {}
    for code_list in CodeListName:
        for candidate in (
            directory / "vocab" / f"{code_list.value}.csv",
            directory / f"{code_list.value}.csv",
        ):
            if candidate.exists():
                code_lists[code_list.value] = read(candidate)
                break

    loaded = SourceTables.from_records(
        species=species, code_lists=code_lists, **tables
    )
    logger.info(
        f"Loaded tables from {directory}: {loaded.row_counts}, "
        f"{len(loaded.code_lists)} code lists"
    )
    return loaded
