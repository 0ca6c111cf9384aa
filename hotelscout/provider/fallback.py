"""Canned payloads used when a rates sub-query cannot be fetched.

Each payload has the same shape as the live provider section it replaces, so
consumers render it unchanged. Callers mark the result as degraded.
"""
import copy
from typing import Any, Dict, List


def _room(name: str, description: str, nightly: int, total: int, rate_name: str,
          members_only: bool = False, near_sellout: bool = False) -> Dict[str, Any]:
    return {
        "node": {
            "basicInformation": {
                "name": name,
                "description": description,
                "freeCancellationUntil": None,
                "membersOnly": members_only,
            },
            "rates": {
                "localizedName": {"translatedText": rate_name},
                "rateAmountsByMode": {
                    "averageNightlyRatePerUnit": {
                        "amount": {
                            "origin": {"amount": nightly * 100, "currency": "USD", "valueDecimalPoint": 2}
                        }
                    }
                },
            },
            "totalPricing": {
                "rateAmountsByMode": {
                    "grandTotal": {"amount": {"origin": {"value": total * 100, "valueDecimalPoint": 2}}},
                    "subtotalPerQuantity": {
                        "amount": {"origin": {"currency": "USD", "value": total * 100, "valueDecimalPoint": 2}}
                    },
                }
            },
            "availabilityAttributes": {"isNearSellout": near_sellout},
        }
    }


_ROOMS = [
    _room("Guest room, 1 King", "Standard room with a king bed and city view", 249, 298, "Flexible Rate"),
    _room("Guest room, 2 Queen", "Standard room with two queen beds", 269, 322, "Flexible Rate"),
    _room("Guest room, 1 King", "Standard room with a king bed, member rate", 229, 274, "Member Rate",
          members_only=True),
    _room("Suite, 1 King", "One-bedroom suite with separate living area", 429, 514, "Flexible Rate",
          near_sellout=True),
]

_PROPERTY = {
    "basicInformation": {
        "descriptions": [
            {"type": {"code": "location"}, "text": "Conveniently located near local attractions."}
        ],
        "isAdultsOnly": False,
        "resort": False,
    }
}

_IMAGES = {"imagesForAllTags": {"total": 0, "assets": []}}

_HEADER = {
    "basicInformation": {"name": "Hotel", "currency": "USD"},
    "reviews": {
        "numberOfReviews": {"count": 0, "description": None},
        "stars": {"count": None, "description": None},
    },
    "contactInformation": {
        "address": {
            "line1": None,
            "city": None,
            "stateProvince": {"description": None},
            "country": {"description": None, "code": None},
            "postalCode": None,
        }
    },
}


def property_section(property_id: str) -> Dict[str, Any]:
    data = copy.deepcopy(_PROPERTY)
    data["id"] = property_id
    return data


def rooms_section() -> Dict[str, Any]:
    edges: List[Dict[str, Any]] = copy.deepcopy(_ROOMS)
    return {"edges": edges, "total": len(edges), "status": {"code": "FALLBACK"}}


def images_section() -> Dict[str, Any]:
    return copy.deepcopy(_IMAGES)


def header_section(property_id: str) -> Dict[str, Any]:
    data = copy.deepcopy(_HEADER)
    data["id"] = property_id
    return data


def section(name: str, property_id: str) -> Dict[str, Any]:
    """Fallback payload for one named rates section."""
    if name == "property":
        return property_section(property_id)
    if name == "rooms":
        return rooms_section()
    if name == "images":
        return images_section()
    if name == "header":
        return header_section(property_id)
    raise KeyError(name)
