"""Record mappers: one source row in, one canonical record (or a skip) out.

Every mapper is a declarative list of :class:`FieldSpec` triples
``(destination, aliases, normalizer)`` plus a ``compose`` hook for the
few fields built from other fields (packaging, cover image, offer price).

Rules shared by all mappers:

* The business key is resolved first.  A row without one is skipped with
  ``SkipReason.MISSING_BUSINESS_KEY`` and nothing else is computed.
* Top-level fields that normalize to ``None`` are left out of the record.
  Booleans are always present.
* Structured groups (``address``, ``contact``, ``vatInfo``...) are always
  present as dicts; their members may be ``None``.
* A field that fails to normalize turns the row into a
  ``SkipReason.MAPPING_ERROR`` skip instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

from . import aliases
from .aliases import AliasTable
from .headers import HeaderIndex, find_column_index, resolve_field
from .models import ConfigError, Entity, MapResult, SkipReason, SourceError
from .normalizers import (
    is_active_flag,
    make_id_segment,
    normalize_boolean,
    normalize_decimal,
    normalize_integer,
    normalize_text,
    normalize_url,
    round_currency,
    split_hierarchy,
)

logger = logging.getLogger(__name__)

Normalizer = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldSpec:
    """Where a field goes, which headers feed it, and how to clean it."""

    destination: str
    aliases: tuple[str, ...]
    normalizer: Normalizer = normalize_text


def _specs(table: AliasTable, normalizers: Mapping[str, Normalizer],
           names: Sequence[str]) -> tuple[FieldSpec, ...]:
    return tuple(
        FieldSpec(name, table[name], normalizers.get(name, normalize_text))
        for name in names
    )


# ---------------------------------------------------------------------------
# Header-keyed mappers
# ---------------------------------------------------------------------------

class RecordMapper:
    """Base mapper for header-keyed rows (CSV and XLSX exports)."""

    entity: Entity = Entity.PRODUCTS
    key_field: str = "productCode"
    field_names: tuple[str, ...] = ()
    groups: Mapping[str, Mapping[str, str]] = {}
    normalizers: Mapping[str, Normalizer] = {}

    def __init__(self, brand: str, table: AliasTable):
        self.brand = brand
        self.table = table
        self.key_aliases = table[self.key_field]
        self.fields = _specs(table, self.normalizers, self.field_names)
        self.group_specs = {
            group: tuple(
                FieldSpec(member, table[source], self.normalizers.get(source, normalize_text))
                for member, source in members.items()
            )
            for group, members in self.groups.items()
        }

    def map(self, row: Mapping[str, Any], index: HeaderIndex | None = None,
            *, sheet: Optional[str] = None) -> MapResult:
        if index is None:
            index = HeaderIndex.from_keys(row.keys())

        key = normalize_text(resolve_field(row, self.key_aliases, index))
        if key is None:
            return MapResult.skip(SkipReason.MISSING_BUSINESS_KEY)

        try:
            record: dict[str, Any] = {self.key_field: key}
            for spec in self.fields:
                value = spec.normalizer(resolve_field(row, spec.aliases, index))
                if value is not None:
                    record[spec.destination] = value
            for group, specs in self.group_specs.items():
                record[group] = {
                    spec.destination: spec.normalizer(resolve_field(row, spec.aliases, index))
                    for spec in specs
                }
            self.compose(record, row, index, sheet)
        except Exception as exc:
            logger.warning("%s %s %s: mapping failed: %s",
                           self.brand, self.entity.value, key, exc)
            return MapResult.skip(SkipReason.MAPPING_ERROR, f"{key}: {exc}")

        record["brand"] = self.brand
        return MapResult.ok(record)

    def compose(self, record: dict[str, Any], row: Mapping[str, Any],
                index: HeaderIndex, sheet: Optional[str]) -> None:
        """Hook for fields derived from other fields.  Default: nothing."""


# -- products ---------------------------------------------------------------

class PriceListProductMapper(RecordMapper):
    """Playmobil / Kivos price-list layout."""

    field_names = (
        "description", "descriptionFull", "supplierBrand", "category", "mm",
        "packaging", "piecesPerPack", "piecesPerBox", "piecesPerCarton",
        "wholesalePrice", "offerPrice", "srp",
        "barcodeUnit", "barcodeBox", "barcodeCarton",
        "discount", "discountEndsAt", "productUrl",
    )
    normalizers = {
        "wholesalePrice": round_currency,
        "offerPrice": round_currency,
        "srp": round_currency,
        "discount": normalize_decimal,
        "productUrl": normalize_url,
        "frontCoverCloudinary": normalize_url,
        "frontCoverLegacy": normalize_url,
    }

    def compose(self, record, row, index, sheet):
        if "packaging" not in record:
            parts = [record[k] for k in ("piecesPerBox", "piecesPerCarton") if k in record]
            if parts:
                record["packaging"] = "/".join(parts)
        if "piecesPerPack" not in record and "packaging" in record:
            record["piecesPerPack"] = record["packaging"]

        cover = (normalize_url(resolve_field(row, self.table["frontCoverCloudinary"], index))
                 or normalize_url(resolve_field(row, self.table["frontCoverLegacy"], index)))
        if cover:
            record["frontCover"] = cover

        if "offerPrice" not in record:
            offer = offer_from_discount(record.get("wholesalePrice"), record.get("discount"))
            if offer is not None:
                record["offerPrice"] = offer


class PlaymobilProductMapper(PriceListProductMapper):
    field_names = PriceListProductMapper.field_names + (
        "launchDate", "playingTheme", "cataloguePage", "suggestedAge", "gender",
        "availableStock", "isActive",
    )
    normalizers = {
        **PriceListProductMapper.normalizers,
        "availableStock": normalize_integer,
        "isActive": normalize_boolean,
    }


class JohnProductMapper(RecordMapper):
    """Multi-sheet catalogue; each sheet name becomes ``sheetCategory``."""

    field_names = (
        "description", "generalCategory", "subCategory", "barcode", "packaging",
        "priceList", "wholesalePrice", "srp",
        "productDimensions", "packageDimensions", "frontCover",
    )
    normalizers = {
        "priceList": round_currency,
        "wholesalePrice": round_currency,
        "srp": round_currency,
        "frontCover": normalize_url,
    }

    def compose(self, record, row, index, sheet):
        category = normalize_text(sheet)
        if category:
            record["sheetCategory"] = category


def offer_from_discount(wholesale: Optional[float], discount: Optional[float]) -> Optional[float]:
    """Offer price implied by a discount, given as a fraction or a percentage."""
    if wholesale is None or discount is None or discount <= 0:
        return None
    rate = discount / 100 if discount > 1 else discount
    if rate >= 1:
        return None
    return round_currency(wholesale * (1 - rate))


# -- customers --------------------------------------------------------------

_ADDRESS_CONTACT_VAT: dict[str, dict[str, str]] = {
    "address": {"street": "street", "postalCode": "postalCode", "city": "city"},
    "contact": {
        "telephone1": "telephone1",
        "telephone2": "telephone2",
        "fax": "fax",
        "email": "email",
    },
    "vatInfo": {"registrationNo": "vatRegistrationNo", "office": "vatOffice"},
}


class CustomerMapper(RecordMapper):
    entity = Entity.CUSTOMERS
    key_field = "customerCode"
    field_names = ("name", "profession", "merch")
    groups = _ADDRESS_CONTACT_VAT


class PlaymobilCustomerMapper(CustomerMapper):
    field_names = ("name", "name3", "merch")
    groups = {
        **_ADDRESS_CONTACT_VAT,
        "salesInfo": {
            "description": "salesGroup",
            "groupKey": "groupKey",
            "groupKeyText": "groupKeyText",
        },
        "region": {"id": "regionId", "name": "region"},
        "transportation": {"zoneId": "transportationZoneId", "zone": "transportationZone"},
    }


class KivosCustomerMapper(CustomerMapper):
    field_names = CustomerMapper.field_names + (
        "balance", "InvSales2022", "InvSales2023", "InvSales2024", "isActive", "channel",
    )
    normalizers = {
        "balance": round_currency,
        "InvSales2022": round_currency,
        "InvSales2023": round_currency,
        "InvSales2024": round_currency,
        "isActive": is_active_flag,
    }


_MAPPERS: dict[tuple[str, Entity], tuple[type[RecordMapper], AliasTable]] = {
    ("playmobil", Entity.PRODUCTS): (PlaymobilProductMapper, aliases.PLAYMOBIL_PRODUCT),
    ("kivos", Entity.PRODUCTS): (PriceListProductMapper, aliases.KIVOS_PRODUCT),
    ("john", Entity.PRODUCTS): (JohnProductMapper, aliases.JOHN_PRODUCT),
    ("playmobil", Entity.CUSTOMERS): (PlaymobilCustomerMapper, aliases.PLAYMOBIL_CUSTOMER),
    ("kivos", Entity.CUSTOMERS): (KivosCustomerMapper, aliases.KIVOS_CUSTOMER),
    ("john", Entity.CUSTOMERS): (CustomerMapper, aliases.JOHN_CUSTOMER),
}


def mapper_for(brand: str, entity: Entity) -> RecordMapper:
    """Build the mapper registered for *brand* and *entity*."""
    try:
        cls, table = _MAPPERS[(brand, entity)]
    except KeyError:
        raise ConfigError(f"No {entity.value} mapper for brand '{brand}'") from None
    return cls(brand, table)


# ---------------------------------------------------------------------------
# Positional mappers (supermarket sheets)
# ---------------------------------------------------------------------------

class PositionalMapper:
    """Maps cell arrays using column positions found once in the header row."""

    key_field: str = ""
    table: AliasTable = aliases.SUPERMARKET_LISTING

    def __init__(self, header_row: Sequence[Any], brand: str = "john"):
        self.brand = brand
        self.columns = {
            name: find_column_index(header_row, candidates)
            for name, candidates in self.table.items()
        }
        if self.columns[self.key_field] == -1:
            raise SourceError(
                f"Missing {self.key_field!r} column in header: "
                f"{[h for h in header_row if h is not None]}"
            )
        missing = [name for name, idx in self.columns.items() if idx == -1]
        if missing:
            logger.debug("%s: columns not found: %s", type(self).__name__, missing)

    def cell(self, values: Sequence[Any], name: str) -> Any:
        idx = self.columns.get(name, -1)
        if idx == -1 or idx >= len(values):
            return None
        return values[idx]

    def doc_id(self, record: Mapping[str, Any]) -> str:
        return f"{self.brand}_{make_id_segment(record[self.key_field])}"

    def map(self, values: Sequence[Any]) -> MapResult:
        key = normalize_text(self.cell(values, self.key_field))
        if key is None or not make_id_segment(key):
            return MapResult.skip(SkipReason.MISSING_BUSINESS_KEY)
        try:
            record = self.build(key, values)
        except Exception as exc:
            logger.warning("%s %s: mapping failed: %s", type(self).__name__, key, exc)
            return MapResult.skip(SkipReason.MAPPING_ERROR, f"{key}: {exc}")
        return MapResult.ok(record)

    def build(self, key: str, values: Sequence[Any]) -> dict[str, Any]:
        raise NotImplementedError


_LISTING_FLAGS = (
    "isNew", "isAActive", "isBActive", "isCActive",
    "isSummerActiveGrand", "isSummerActiveMegala", "isSummerActiveMegalaPlus",
    "isSummerActiveMesaia", "isSummerActiveMikra",
)


class SupermarketListingMapper(PositionalMapper):
    key_field = "productCode"
    table = aliases.SUPERMARKET_LISTING

    def build(self, key, values):
        record: dict[str, Any] = {"productCode": key}
        text_fields = {
            "superMarket": normalize_text,
            "productCategory": normalize_text,
            "photoUrl": normalize_url,
            "barcode": normalize_text,
            "description": normalize_text,
            "packaging": normalize_text,
            "price": normalize_decimal,
        }
        for name, normalizer in text_fields.items():
            value = normalizer(self.cell(values, name))
            if value is not None:
                record[name] = value
        for name in _LISTING_FLAGS:
            record[name] = normalize_boolean(self.cell(values, name))
        record["brand"] = normalize_text(self.cell(values, "brand")) or self.brand
        record["categoryHierarchyTree"] = split_hierarchy(self.cell(values, "categoryHierarchyTree"))
        return record


class SupermarketStoreMapper(PositionalMapper):
    key_field = "storeCode"
    table = aliases.SUPERMARKET_STORE

    def build(self, key, values):
        record: dict[str, Any] = {"storeCode": key}
        for name in ("storeName", "storeCategory", "hasToys", "hasSummerItems"):
            value = normalize_text(self.cell(values, name))
            if value is not None:
                record[name] = value
        record["brand"] = self.brand
        return record
