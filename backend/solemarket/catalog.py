"""
Catalog query engine: filter, then sort, a full listing snapshot.

Everything here is pure and total over well-typed listings. Missing optional
fields already carry neutral defaults (see models.Record), so no predicate or
comparator needs a null check. Every sort is Python's stable sort, so listings
with equal keys keep their snapshot order.
"""
import locale
from typing import Any, Callable, Dict, Iterable, List, Tuple

from .models import FilterSpecification, Listing, SortKey

Predicate = Callable[[Listing, FilterSpecification], bool]


def _contains_ci(haystack: str, needle: str) -> bool:
    return needle.lower() in haystack.lower()


def _match_search(listing: Listing, spec: FilterSpecification) -> bool:
    query = spec.search.lower()
    if not query:
        return True
    fields = [listing.name, listing.brand, listing.description, listing.category, listing.color, *listing.tags]
    return any(query in field.lower() for field in fields)


def _member(value: str, allowed: List[str]) -> bool:
    return not allowed or value in allowed


def _substring_any(value: str, wanted: List[str]) -> bool:
    if not wanted:
        return True
    return bool(value) and any(_contains_ci(value, w) for w in wanted)


def _match_price(listing: Listing, spec: FilterSpecification) -> bool:
    bounds = spec.price_range
    if listing.price < bounds.min:
        return False
    return bounds.max is None or listing.price <= bounds.max


def _match_sizes(listing: Listing, spec: FilterSpecification) -> bool:
    return not spec.sizes or bool(set(listing.sizes) & set(spec.sizes))


def _match_stock(listing: Listing, spec: FilterSpecification) -> bool:
    # Unknown stock passes; only an explicit False is hidden.
    return not spec.in_stock or listing.in_stock is not False


PREDICATES: List[Predicate] = [
    _match_search,
    lambda l, s: _member(l.brand, s.brands),
    _match_price,
    _match_sizes,
    lambda l, s: _member(l.condition, s.conditions),
    lambda l, s: _member(l.category, s.categories),
    lambda l, s: _substring_any(l.color, s.colors),
    lambda l, s: _substring_any(l.material, s.materials),
    lambda l, s: _member(l.target_gender, s.genders),
    lambda l, s: _member(l.age_group, s.age_groups),
    lambda l, s: _member(l.season, s.seasons),
    lambda l, s: _member(l.style, s.styles),
    lambda l, s: l.rating >= s.rating,
    lambda l, s: not s.featured or l.featured,
    _match_stock,
]


def matches(listing: Listing, spec: FilterSpecification) -> bool:
    return all(predicate(listing, spec) for predicate in PREDICATES)


def _created(listing: Listing) -> float:
    return listing.created_at.timestamp() if listing.created_at else 0.0


def _collate(listing: Listing) -> Tuple[str, str]:
    # Case-folded first so "alpha" < "Zulu" in any locale; raw name breaks ties.
    return locale.strxfrm(listing.name.casefold()), listing.name


# (key, reverse) per sort option. reverse=True keeps equal keys in input order.
_SORTS: Dict[SortKey, Any] = {
    SortKey.NEWEST: (_created, True),
    SortKey.OLDEST: (_created, False),
    SortKey.PRICE_LOW: (lambda l: l.price, False),
    SortKey.PRICE_HIGH: (lambda l: l.price, True),
    SortKey.RATING: (lambda l: l.rating, True),
    SortKey.POPULAR: (lambda l: l.views, True),
    SortKey.NAME_AZ: (_collate, False),
    SortKey.NAME_ZA: (_collate, True),
    SortKey.FEATURED: (lambda l: l.featured, True),
}


def sort_listings(listings: Iterable[Listing], sort_key: SortKey = SortKey.NEWEST) -> List[Listing]:
    key, reverse = _SORTS[SortKey(sort_key)]
    return sorted(listings, key=key, reverse=reverse)


def query_catalog(
    listings: Iterable[Listing],
    spec: FilterSpecification,
    sort_key: SortKey = SortKey.NEWEST,
) -> List[Listing]:
    """Return the visible, ordered subset of `listings`."""
    return sort_listings((l for l in listings if matches(l, spec)), sort_key)


def default_filters() -> FilterSpecification:
    return FilterSpecification()


def active_filter_count(spec: FilterSpecification) -> int:
    """Number of constrained dimensions, as shown on the filter badge. Search and the stock toggle are not counted."""
    list_dims = [
        spec.brands,
        spec.sizes,
        spec.conditions,
        spec.categories,
        spec.colors,
        spec.materials,
        spec.genders,
        spec.age_groups,
        spec.seasons,
        spec.styles,
    ]
    count = sum(len(values) for values in list_dims)
    count += 1 if spec.rating > 0 else 0
    count += 1 if spec.featured else 0
    count += 1 if spec.price_range.min > 0 or spec.price_range.max is not None else 0
    return count


def _distinct(values: Iterable[Any]) -> List[Any]:
    seen = set()
    out = []
    for v in values:
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out


def facet_values(listings: List[Listing]) -> Dict[str, List[Any]]:
    """Distinct values per filter dimension, for building the filter picker."""
    return {
        "brands": _distinct(l.brand for l in listings),
        "sizes": sorted(_distinct(s for l in listings for s in l.sizes)),
        "conditions": _distinct(l.condition for l in listings),
        "categories": _distinct(l.category for l in listings),
        "colors": _distinct(l.color for l in listings),
        "materials": _distinct(l.material for l in listings),
        "genders": _distinct(l.target_gender for l in listings),
        "ageGroups": _distinct(l.age_group for l in listings),
        "seasons": _distinct(l.season for l in listings),
        "styles": _distinct(l.style for l in listings),
    }
