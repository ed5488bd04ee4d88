"""
HierarchyBuilder - Store/group topology for a generation run.

Stores are assigned to groups sequentially (stores 1..k to the first group,
k+1..2k to the second, ...). Groups always have equal size; a store count
that does not divide evenly is a configuration error, never a remainder
group.

Usage:
    builder = HierarchyBuilder(default_catalog(), seed=42)
    hierarchy = builder.build(50, group_count=5)
    hierarchy.group_size        # 10
    hierarchy.store_at(11)      # first store of GROUP_B
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import ConfigurationError
from .catalog import EntityCatalog, GroupTemplate
from .name_pool import CityNamePool


def format_store_id(index: int, width: int = 3) -> str:
    """STORE_001 style identifier for a 1-based store index."""
    return f"STORE_{index:0{width}d}"


def group_label(position: int) -> str:
    """Spreadsheet-style label for a 0-based group position: A..Z, AA, AB, ..."""
    label = ""
    position += 1
    while position > 0:
        position, remainder = divmod(position - 1, 26)
        label = chr(ord("A") + remainder) + label
    return label


@dataclass(frozen=True)
class Store:
    """A store in the hierarchy. Records reference stores by store_id."""

    store_id: str
    store_index: int  # 1-based
    store_name: str
    group_id: str
    location_type: str
    region: str
    tier: str

    def to_dict(self) -> dict:
        return {
            "store_id": self.store_id,
            "store_index": self.store_index,
            "store_name": self.store_name,
            "group_id": self.group_id,
            "location_type": self.location_type,
            "region": self.region,
            "tier": self.tier,
        }


@dataclass(frozen=True)
class Group:
    """Fixed-size partition of stores sharing a behavioral template."""

    group_id: str
    group_name: str
    store_ids: tuple[str, ...]
    template: GroupTemplate

    @property
    def size(self) -> int:
        return len(self.store_ids)

    def to_dict(self) -> dict:
        return {
            "group_id": self.group_id,
            "group_name": self.group_name,
            "template": self.template.key,
            "store_count": self.size,
            "stores": list(self.store_ids),
        }


@dataclass
class StoreHierarchy:
    """
    Store and group tables for one run.

    Attributes:
        banner: Retail banner name
        stores: Stores ordered by store_index
        groups: Groups in assignment order
    """

    banner: str
    stores: tuple[Store, ...]
    groups: tuple[Group, ...]
    _stores_by_id: dict[str, Store] = field(init=False, repr=False)
    _groups_by_id: dict[str, Group] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._stores_by_id = {s.store_id: s for s in self.stores}
        self._groups_by_id = {g.group_id: g for g in self.groups}

    @property
    def store_count(self) -> int:
        return len(self.stores)

    @property
    def group_count(self) -> int:
        return len(self.groups)

    @property
    def group_size(self) -> int:
        return self.groups[0].size if self.groups else 0

    @property
    def store_ids(self) -> list[str]:
        return [s.store_id for s in self.stores]

    def store_at(self, index: int) -> Store:
        """
        Get a store by 1-based index.

        Raises:
            ConfigurationError: If index is outside 1..store_count
        """
        if not 1 <= index <= len(self.stores):
            raise ConfigurationError(
                f"Store index {index} outside 1..{len(self.stores)}"
            )
        return self.stores[index - 1]

    def get_store(self, store_id: str) -> Store:
        try:
            return self._stores_by_id[store_id]
        except KeyError:
            raise ConfigurationError(f"Unknown store: {store_id}") from None

    def get_group(self, group_id: str) -> Group:
        try:
            return self._groups_by_id[group_id]
        except KeyError:
            raise ConfigurationError(f"Unknown group: {group_id}") from None

    def group_for(self, store: Store) -> Group:
        return self.get_group(store.group_id)

    def to_dict(self) -> dict:
        """Plain-data view consumed by the dashboard layer."""
        return {
            "banner": self.banner,
            "all_stores": {
                "total_count": self.store_count,
                "group_count": self.group_count,
                "stores_per_group": self.group_size,
            },
            "groups": [g.to_dict() for g in self.groups],
            "stores": [s.to_dict() for s in self.stores],
        }


class HierarchyBuilder:
    """
    Builds StoreHierarchy tables from a catalog.

    Group i uses the catalog's group template i (cycling when there are more
    groups than templates). Store display names combine the banner, the
    template's location name and a city from a seeded Faker pool.
    """

    def __init__(self, catalog: EntityCatalog, seed: int = 42) -> None:
        self.catalog = catalog
        self.seed = seed

    def build(
        self,
        store_count: int,
        group_count: int | None = None,
        group_size: int | None = None,
    ) -> StoreHierarchy:
        """
        Build the store and group tables.

        Exactly one of group_count or group_size must be given.

        Args:
            store_count: Total number of stores
            group_count: Number of equal groups
            group_size: Stores per group

        Returns:
            StoreHierarchy satisfying the equal-group invariant

        Raises:
            ConfigurationError: On non-positive counts, both/neither grouping
                arguments, or a store count that does not divide evenly
        """
        group_count = self._resolve_group_count(store_count, group_count, group_size)
        per_group = store_count // group_count
        width = max(3, len(str(store_count)))

        cities = CityNamePool(seed=self.seed).sample_cities(store_count)
        templates = self.catalog.group_templates

        stores: list[Store] = []
        groups: list[Group] = []
        for g in range(group_count):
            template = templates[g % len(templates)]
            group_id = f"GROUP_{group_label(g)}"
            group_name = template.name
            if group_count > len(templates):
                group_name = f"{template.name} {g // len(templates) + 1}"

            member_ids: list[str] = []
            for offset in range(per_group):
                index = g * per_group + offset + 1
                store_id = format_store_id(index, width)
                stores.append(
                    Store(
                        store_id=store_id,
                        store_index=index,
                        store_name=self._store_name(template, offset, cities[index - 1]),
                        group_id=group_id,
                        location_type=template.location_type,
                        region=template.region,
                        tier=template.tier,
                    )
                )
                member_ids.append(store_id)

            groups.append(
                Group(
                    group_id=group_id,
                    group_name=group_name,
                    store_ids=tuple(member_ids),
                    template=template,
                )
            )

        return StoreHierarchy(
            banner=self.catalog.banner,
            stores=tuple(stores),
            groups=tuple(groups),
        )

    @staticmethod
    def _resolve_group_count(
        store_count: int,
        group_count: int | None,
        group_size: int | None,
    ) -> int:
        if store_count < 1:
            raise ConfigurationError(f"store_count must be positive, got {store_count}")
        if (group_count is None) == (group_size is None):
            raise ConfigurationError("Specify exactly one of group_count or group_size")

        if group_size is not None:
            if group_size < 1:
                raise ConfigurationError(f"group_size must be positive, got {group_size}")
            if store_count % group_size:
                raise ConfigurationError(
                    f"{store_count} stores cannot be split into groups of {group_size}"
                )
            return store_count // group_size

        if group_count < 1:
            raise ConfigurationError(f"group_count must be positive, got {group_count}")
        if store_count % group_count:
            raise ConfigurationError(
                f"{store_count} stores cannot be split evenly into {group_count} groups"
            )
        return group_count

    def _store_name(self, template: GroupTemplate, position: int, city: str) -> str:
        parts = [self.catalog.banner]
        if template.store_name_templates:
            names = template.store_name_templates
            parts.append(names[position % len(names)])
        parts.append(city)
        return " ".join(parts)
