"""GraphQL operations understood by the hotel inventory provider.

The provider only accepts safelisted operations, so each one is sent with its
name, a client family and (where known) the operation signature.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from hotelscout.schemas import HotelSearchQuery


@dataclass(frozen=True)
class Operation:
    name: str
    client: str  # homepage, shop or book
    query: str
    signature: Optional[str] = None

    def body(self, variables: Dict[str, Any]) -> Dict[str, Any]:
        return {"operationName": self.name, "variables": variables, "query": self.query}


SUGGESTED_PLACES = Operation(
    name="phoenixShopSuggestedPlacesQuery",
    client="homepage",
    signature="70b3555c91797ca8945e4f4b1bdda42c3e37fa1f08fa99feafb73195702c1d34",
    query="""query phoenixShopSuggestedPlacesQuery($query: String!) {
  suggestedPlaces(query: $query) {
    edges {
      node {
        placeId
        description
        primaryDescription
        secondaryDescription
      }
    }
    total
  }
}""",
)

SUGGESTED_PLACE_DETAILS = Operation(
    name="phoenixShopSuggestedPlacesDetailsQuery",
    client="homepage",
    signature="0b89c8ea7a6a6408eaee651983d6c7ee168670b727cc5beea980b2d2edfdbe2b",
    query="""query phoenixShopSuggestedPlacesDetailsQuery($placeId: ID!) {
  suggestedPlaceDetails(placeId: $placeId) {
    placeId
    description
    distance
    location {
      latitude
      longitude
      address
      city
      state
      country
      countryName
    }
    types
    destinationType
  }
}""",
)

SEARCH_BY_GEOLOCATION = Operation(
    name="phoenixShopDatedSearchByGeoQuery",
    client="shop",
    query="""query phoenixShopDatedSearchByGeoQuery($search: LowestAvailableRatesSearchByGeolocationInput, $offset: Int, $limit: Int, $sorting: [SortingInput]) {
  search {
    lowestAvailableRates {
      searchByGeolocation(search: $search, offset: $offset, limit: $limit, sorting: $sorting) {
        total
        pageInfo { hasNextPage hasPreviousPage currentPage }
        facets {
          type { code label }
          buckets {
            ... on SearchFacetBucket { code label count }
          }
        }
        edges {
          node {
            id
            distance
            property {
              id
              basicInformation { name brand { id name } }
              seoNickname
              reviews { stars { count } numberOfReviews { count } }
              media {
                primaryImage {
                  edges { node { imageUrls { wideHorizontal classicHorizontal square } } }
                }
              }
            }
            rates {
              status { code }
              rateModes {
                ... on RateModesLowestAverageRate {
                  lowestAverageRate { amount { amount currency decimalPoint } }
                }
              }
            }
          }
        }
      }
    }
  }
}""",
)

PROPERTY_INFO = Operation(
    name="phoenixShopHQVPropertyInfoCall",
    client="shop",
    signature="2eae8e087811e65ee7e33679d6c53431de528e1db9441d5cc24303eae7a2b633",
    query="""query phoenixShopHQVPropertyInfoCall($propertyId: ID!, $filter: [ContactNumberType], $descriptionsFilter: [PropertyDescriptionType]) {
  property(id: $propertyId) {
    id
    basicInformation {
      name
      currency
      latitude
      longitude
      isAdultsOnly
      brand { id name }
      openingDate
      bookable
      resort
      descriptions(filter: $descriptionsFilter) { text type { code label } }
    }
    contactInformation {
      address {
        line1
        city
        postalCode
        stateProvince { label description code }
        country { code description label }
      }
      contactNumbers(filter: $filter) { phoneNumber { display original } }
    }
    airports {
      id
      name
      distanceDetails { description }
      complimentaryShuttle
    }
    reviews { stars { count } numberOfReviews { count } }
    parking { fees { fee description } description }
    policies { checkInTime checkOutTime smokefree petsAllowed petsPolicyDescription }
    ... on Hotel { seoNickname }
  }
}""",
)

PHOTO_GALLERY = Operation(
    name="phoenixShopHQVPhotogalleryCall",
    client="shop",
    signature="db0d761c49558aadfb86728cdd67e50aa6dd5be802f78659a5efe7e079f04dd2",
    query="""fragment ProductImageConnectionFragmentHQV on ProductImageConnection {
  edges { node { alternateDescription caption title imageUrls { classicHorizontal } } }
}

query phoenixShopHQVPhotogalleryCall($propertyId: ID!) {
  property(id: $propertyId) {
    id
    media {
      photoGallery {
        dining { ...ProductImageConnectionFragmentHQV }
        features { ...ProductImageConnectionFragmentHQV }
        guestRooms { ...ProductImageConnectionFragmentHQV }
        hotelView { ...ProductImageConnectionFragmentHQV }
        recreationAndFitness { ...ProductImageConnectionFragmentHQV }
        spa { ...ProductImageConnectionFragmentHQV }
        suites { ...ProductImageConnectionFragmentHQV }
      }
    }
  }
}""",
)

HOTEL_AMENITIES = Operation(
    name="phoenixShopHotelAmenities",
    client="shop",
    signature="77ebd1ceb8c4eafdb023fffbbc02524b7a4dc414152946846d30294d65115711",
    query="""query phoenixShopHotelAmenities($propertyId: ID!) {
  property(id: $propertyId) {
    ... on Hotel {
      id
      facilitiesAndServices {
        type { code description }
        description
        groupName
        details { key value }
      }
      matchingSearchFacets { dimension { code description } }
    }
  }
}""",
)

BOOK_PROPERTY = Operation(
    name="PhoenixBookProperty",
    client="book",
    signature="9f165424df22961c9a0d1664c26b9130e2fcf0318bc78c25972cc2e505455376",
    query="""query PhoenixBookProperty($propertyId: ID!) {
  property(id: $propertyId) {
    ... on Hotel {
      basicInformation {
        ... on HotelBasicInformation {
          descriptions { type { code } text }
          isAdultsOnly
          resort
        }
      }
    }
  }
}""",
)

SEARCH_PRODUCTS_BY_PROPERTY = Operation(
    name="PhoenixBookSearchProductsByProperty",
    client="book",
    signature="a1079a703a2d21d82c0c65e4337271c3029c69028c6189830f30882170075756",
    query="""query PhoenixBookSearchProductsByProperty($search: ProductByPropertySearchInput, $offset: Int, $limit: Int) {
  searchProductsByProperty(search: $search, offset: $offset, limit: $limit) {
    edges {
      node {
        ... on HotelRoom {
          id
          availabilityAttributes { isNearSellout }
          rates {
            localizedName { translatedText }
            rateAmountsByMode {
              averageNightlyRatePerUnit { amount { origin { amount currency valueDecimalPoint } } }
            }
          }
          basicInformation {
            type
            name
            localizedName { translatedText }
            description
            localizedDescription { translatedText }
            membersOnly
            freeCancellationUntil
          }
          totalPricing {
            quantity
            rateAmountsByMode {
              grandTotal { amount { origin { value: amount valueDecimalPoint } } }
              subtotalPerQuantity { amount { origin { currency value: amount valueDecimalPoint } } }
            }
          }
        }
      }
    }
    total
  }
}""",
)

ROOM_IMAGES = Operation(
    name="PhoenixBookRoomImages",
    client="book",
    signature="40894e659a54fb0a859b43c02fcfddd48b45a7cab82c4093a2022bb09efd366d",
    query="""query PhoenixBookRoomImages($propertyId: ID!) {
  property(id: $propertyId) {
    ... on Hotel {
      media {
        photoGallery {
          imagesForAllTags {
            total
            assets {
              imageUrls { wideHorizontal wideVertical }
              roomTypeCodes
              title
              caption
              sortOrder
            }
          }
        }
      }
    }
  }
}""",
)

HOTEL_HEADER = Operation(
    name="PhoenixBookHotelHeaderData",
    client="book",
    signature="40be837690ecfe0509aa28dec18aacd711550258126c658ff0fc06e56603c330",
    query="""query PhoenixBookHotelHeaderData($propertyId: ID!) {
  property(id: $propertyId) {
    id
    basicInformation { latitude longitude name currency brand { id } }
    reviews {
      numberOfReviews { count description }
      stars { count description }
    }
    contactInformation {
      address {
        line1
        city
        stateProvince { description }
        country { description code }
        postalCode
      }
    }
    ... on Hotel { seoNickname }
  }
}""",
)


# Facet dimension type codes for each filter field of HotelSearchQuery
FACET_DIMENSIONS = {
    "brands": "BRANDS",
    "amenities": "AMENITIES",
    "activities": "ACTIVITIES",
    "transportation_types": "TRANSPORTATION_TYPES",
    "property_types": "PROPERTY_TYPES",
    "cities": "CITIES",
    "states": "STATES",
    "countries": "COUNTRIES",
    "meetings_and_events": "MEETINGS_EVENTS",
    "hotel_service_types": "HOTEL_SERVICE_TYPES",
    "leisure_region": "LEISURE_REGIONS",
    "all_inclusive": "ALL_INCLUSIVE",
}


def build_facet_terms(query: HotelSearchQuery) -> List[Dict[str, Any]]:
    return [
        {"type": FACET_DIMENSIONS[name], "dimensions": codes}
        for name, codes in query.active_filters().items()
    ]


def search_by_geolocation_variables(query: HotelSearchQuery, offset: int, limit: int) -> Dict[str, Any]:
    return {
        "search": {
            "latitude": query.latitude,
            "longitude": query.longitude,
            "options": {
                "startDate": query.start_date,
                "endDate": query.end_date,
                "quantity": query.rooms,
                "numberInParty": query.guests + query.children,
                "childAges": list(query.child_ages),
                "includeTaxesAndFees": False,
                "rateRequestTypes": [{"value": "", "type": "STANDARD"}],
            },
            "facets": {"terms": build_facet_terms(query)},
        },
        "sorting": [{"fieldType": "DISTANCE", "direction": "ASC"}],
        "offset": offset,
        "limit": limit,
    }


def search_products_variables(
    property_id: str, check_in: str, check_out: str, rooms: int, guests: int
) -> Dict[str, Any]:
    return {
        "search": {
            "options": {
                "startDate": check_in,
                "endDate": check_out,
                "quantity": rooms,
                "numberInParty": guests,
                "childAges": [],
                "productRoomType": ["ALL"],
                "productStatusType": ["AVAILABLE"],
                "rateRequestTypes": [
                    {"value": "", "type": "STANDARD"},
                    {"value": "", "type": "PREPAY"},
                    {"value": "", "type": "PACKAGES"},
                    {"value": "MRM", "type": "CLUSTER"},
                ],
                "isErsProperty": False,
            },
            "propertyId": property_id,
        },
        "offset": 0,
        "limit": 150,
    }
