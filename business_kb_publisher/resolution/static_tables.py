"""
In-process identifier tables for very common values.

Checked before the cache and the remote lookup: O(1) and no network. Keys
are already normalized (see normalization.normalize_key).
"""

from business_kb_publisher.domain.models import EntityType

US_CITY_QIDS: dict[str, str] = {
    "san francisco, ca": "Q62",
    "new york, ny": "Q60",
    "los angeles, ca": "Q65",
    "chicago, il": "Q1297",
    "houston, tx": "Q16555",
    "phoenix, az": "Q16556",
    "philadelphia, pa": "Q1345",
    "san antonio, tx": "Q975",
    "san diego, ca": "Q16552",
    "dallas, tx": "Q16557",
    "san jose, ca": "Q16553",
    "austin, tx": "Q16559",
    "seattle, wa": "Q5083",
    "denver, co": "Q16554",
    "boston, ma": "Q100",
    "detroit, mi": "Q12439",
    "portland, or": "Q6106",
    "miami, fl": "Q8652",
    "atlanta, ga": "Q23556",
    "las vegas, nv": "Q23768",
}

INDUSTRY_QIDS: dict[str, str] = {
    "software development": "Q7397",
    "technology": "Q11016",
    "healthcare": "Q31207",
    "finance": "Q43015",
    "retail": "Q126793",
    "manufacturing": "Q187939",
    "education": "Q8434",
    "consulting": "Q1780447",
    "real estate": "Q49773",
    "construction": "Q385378",
    "food service": "Q1643932",
    "transportation": "Q7590",
    "media": "Q11033",
    "telecommunications": "Q418",
    "energy": "Q11379",
}

LEGAL_FORM_QIDS: dict[str, str] = {
    "corporation": "Q167037",
    "inc": "Q167037",
    "llc": "Q1191951",
    "limited liability company": "Q1191951",
    "sole proprietorship": "Q2135465",
    "nonprofit": "Q163740",
    "nonprofit organization": "Q163740",
    "cooperative": "Q4539",
}

US_STATE_QIDS: dict[str, str] = {
    "ca": "Q99",
    "ny": "Q1384",
    "tx": "Q1439",
    "fl": "Q812",
    "il": "Q1204",
    "pa": "Q1400",
    "oh": "Q1397",
    "ga": "Q1428",
    "nc": "Q1454",
    "mi": "Q1166",
    "nj": "Q1408",
    "va": "Q1370",
    "wa": "Q1223",
    "az": "Q816",
    "ma": "Q771",
    "tn": "Q1509",
    "in": "Q1415",
    "mo": "Q1581",
    "md": "Q1391",
    "wi": "Q1537",
    "co": "Q1261",
    "or": "Q824",
    "nv": "Q1227",
}

COUNTRY_QIDS: dict[str, str] = {
    "us": "Q30",
    "usa": "Q30",
    "united states": "Q30",
    "united states of america": "Q30",
    "canada": "Q16",
    "mexico": "Q96",
    "uk": "Q145",
    "united kingdom": "Q145",
    "germany": "Q183",
    "france": "Q142",
    "japan": "Q17",
    "china": "Q148",
    "australia": "Q408",
    "brazil": "Q155",
    "india": "Q668",
}

_TABLES: dict[EntityType, dict[str, str]] = {
    EntityType.CITY: US_CITY_QIDS,
    EntityType.INDUSTRY: INDUSTRY_QIDS,
    EntityType.LEGAL_FORM: LEGAL_FORM_QIDS,
    EntityType.COUNTRY: COUNTRY_QIDS,
}


def static_lookup(entity_type: EntityType, key: str) -> str | None:
    """Look up a normalized key in the static table for its entity type."""
    return _TABLES[entity_type].get(key)


def state_qid(state: str | None) -> str | None:
    """Identifier of a US state from its two-letter code."""
    if not state:
        return None
    return US_STATE_QIDS.get(state.strip().lower())
