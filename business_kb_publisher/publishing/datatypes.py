"""
Property datatype checks for wbeditentity payloads.

Each property on a Wikibase deployment has a datatype ("wikibase-item",
"url", "external-id", ...) and accepts exactly one datavalue type. The
sandbox deployment reuses production property ids for unrelated
properties, so a payload that is valid on one can be rejected on the
other. These helpers compare a payload against the datatypes the target
reports and strip the properties that do not fit.
"""

import copy

from business_kb_publisher.domain.models import ValueType

# Property datatype -> datavalue type it accepts
DATATYPE_VALUE_TYPES: dict[str, str] = {
    "wikibase-item": ValueType.ITEM.value,
    "wikibase-property": ValueType.ITEM.value,
    "string": ValueType.STRING.value,
    "url": ValueType.STRING.value,
    "external-id": ValueType.STRING.value,
    "commonsMedia": ValueType.STRING.value,
    "time": ValueType.TIME.value,
    "quantity": ValueType.QUANTITY.value,
    "monolingualtext": ValueType.MONOLINGUAL_TEXT.value,
    "globe-coordinate": ValueType.GLOBE_COORDINATE.value,
}

# Upper bound on ids per wbgetentities request
MAX_IDS_PER_REQUEST = 50


def value_type_for(datatype: str) -> str:
    """Datavalue type for a property datatype; unknown datatypes map to themselves."""
    return DATATYPE_VALUE_TYPES.get(datatype, datatype)


def _snaks(data: dict):
    """Yield every value snak in a payload: main snaks, then reference snaks."""
    for statements in (data.get("claims") or {}).values():
        for statement in statements:
            yield statement.get("mainsnak") or {}
            for reference in statement.get("references") or []:
                for snaks in (reference.get("snaks") or {}).values():
                    yield from snaks


def payload_value_types(data: dict) -> dict[str, set[str]]:
    """Map each property used in a payload to the datavalue types it carries."""
    used: dict[str, set[str]] = {}
    for snak in _snaks(data):
        property_id = snak.get("property")
        datavalue = snak.get("datavalue") or {}
        if property_id and datavalue.get("type"):
            used.setdefault(property_id, set()).add(datavalue["type"])
    return used


def datatype_mismatches(data: dict, datatypes: dict[str, str]) -> dict[str, str]:
    """
    Find properties whose values the target would reject.

    Args:
        data: wbeditentity payload
        datatypes: Property id -> datatype as reported by the target.
            Properties absent from the mapping do not exist there.

    Returns:
        Property id -> human-readable reason, sorted by property id
    """
    mismatches = {}
    for property_id, value_types in sorted(payload_value_types(data).items()):
        datatype = datatypes.get(property_id)
        if datatype is None:
            mismatches[property_id] = "property does not exist on the target"
            continue
        expected = value_type_for(datatype)
        wrong = sorted(value_types - {expected})
        if wrong:
            mismatches[property_id] = (
                f"expects {expected} ({datatype}), payload has {', '.join(wrong)}"
            )
    return mismatches


def drop_properties(data: dict, property_ids) -> dict:
    """
    Copy of ``data`` without the given properties.

    Statements for those properties are removed, and so are reference
    snaks using them; a reference left with no snaks is dropped.
    """
    property_ids = set(property_ids)
    result = copy.deepcopy(data)
    claims = {}
    for property_id, statements in (result.get("claims") or {}).items():
        if property_id in property_ids:
            continue
        for statement in statements:
            if "references" not in statement:
                continue
            references = []
            for reference in statement["references"]:
                snaks = {
                    pid: values
                    for pid, values in (reference.get("snaks") or {}).items()
                    if pid not in property_ids
                }
                if snaks:
                    references.append({**reference, "snaks": snaks})
            if references:
                statement["references"] = references
            else:
                del statement["references"]
        claims[property_id] = statements
    result["claims"] = claims
    return result
