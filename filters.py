"""Listing search: conjunctive filters over a sequence of listings, newest first.

Breed is matched exactly (it comes from a fixed selection list on the report
form), city and free text are case-insensitive substring matches.
"""
from typing import Callable, Iterable, List, Optional

from models import DogInDB

Predicate = Callable[[DogInDB], bool]

# Fields searched by the free-text query
QUERY_FIELDS = ("breed", "color", "description", "address", "city")


def breed_predicate(breed: str) -> Predicate:
    # Case-sensitive: "labrador" does not match "Labrador"
    return lambda dog: dog.breed == breed


def city_predicate(city: str) -> Predicate:
    needle = city.lower()
    return lambda dog: needle in dog.city.lower()


def query_predicate(query: str) -> Predicate:
    needle = query.lower()

    def matches(dog: DogInDB) -> bool:
        for field in QUERY_FIELDS:
            value = getattr(dog, field)
            if value is not None and needle in value.lower():
                return True
        return False

    return matches


def build_predicates(breed: Optional[str] = None, city: Optional[str] = None,
                     query: Optional[str] = None) -> List[Predicate]:
    """Return one predicate per non-empty criterion; omitted criteria are ignored."""
    predicates = []
    if breed:
        predicates.append(breed_predicate(breed))
    if city:
        predicates.append(city_predicate(city))
    if query:
        predicates.append(query_predicate(query))
    return predicates


def newest_first(dogs: Iterable[DogInDB]) -> List[DogInDB]:
    return sorted(dogs, key=lambda d: d.created_at, reverse=True)


def filter_dogs(dogs: Iterable[DogInDB], breed: Optional[str] = None, city: Optional[str] = None,
                query: Optional[str] = None) -> List[DogInDB]:
    predicates = build_predicates(breed=breed, city=city, query=query)
    matched = [d for d in dogs if all(p(d) for p in predicates)]
    return newest_first(matched)
