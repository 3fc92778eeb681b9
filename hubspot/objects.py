"""Catalog of HubSpot CRM object types exposed as MCP tools."""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class CrmObject:
    type: str
    name: str
    search_property: str


CRM_OBJECTS: tuple[CrmObject, ...] = (
    CrmObject("contacts", "contact", "email"),
    CrmObject("companies", "company", "name"),
    CrmObject("deals", "deal", "dealname"),
    CrmObject("tickets", "ticket", "subject"),
    CrmObject("products", "product", "name"),
    CrmObject("line_items", "line_item", "name"),
    CrmObject("quotes", "quote", "hs_title"),
)

# EQ matches the whole value, CONTAINS_TOKEN matches any word in it.
SEARCH_OPERATORS = ("CONTAINS_TOKEN", "EQ")

DEFAULT_ASSOCIATION_CATEGORY = "HUBSPOT_DEFINED"


def select_objects(types: Iterable[str] = None) -> list[CrmObject]:
    """Return catalog entries for the given object types, in catalog order."""
    if types is None:
        return list(CRM_OBJECTS)
    wanted = set(types)
    return [obj for obj in CRM_OBJECTS if obj.type in wanted]
