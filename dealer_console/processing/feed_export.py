"""
CSV layouts for the CF247 and AA Cars stock feeds.

Everything here is pure: callers pass in stock rows (anything with the
StockVehicle attributes) and dealer details, and get CSV text back. The
provider payload sections (advertiser_data, vehicle_data, adverts_data,
media_data, features_data) are read defensively since any key may be
missing.
"""

import csv
import io
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..schemas.export_schemas import DealerDetails

CF247_DEALER_HEADERS = [
    "DealerId",
    "DealerName",
    "BuildingName",
    "BuildingNumber",
    "StreetName",
    "Locality",
    "Town",
    "County",
    "Postcode",
    "Phone",
    "EmailAddress",
    "WebsiteURL",
]

CF247_VEHICLE_HEADERS = [
    "VehicleId",
    "DealerId",
    "CapId",
    "Make",
    "Range",
    "Trim",
    "BodyStyle",
    "Colour",
    "Mileage",
    "NumberOfDoors",
    "EngineSize",
    "FuelType",
    "TransmissionType",
    "InsuranceGroup",
    "ServiceHistory",
    "Options",
    "AdditionalOptions",
    "PictureURLs",
    "NoOfPreviousOwners",
    "Price",
    "Registration",
    "YearOfManufacture",
    "VehicleURL",
    "VehicleType",
    "VAT Qualifying",
    "Price Includes VAT",
]

AACARS_DEALER_HEADERS = ["feed_id", "dealername", "address", "postcode", "phone_number", "email"]

AACARS_VEHICLE_HEADERS = [
    "feedid",
    "vehicleid",
    "registration",
    "colour",
    "fueltype",
    "year",
    "mileage",
    "bodytype",
    "doors",
    "make",
    "model",
    "variant",
    "enginesize",
    "price",
    "transmission",
    "description",
    "options",
    "picturerefs",
    "servicehistory",
    "previousowners",
    "plusvat",
    "deeplink",
    "youtuberef",
]

NO_SERVICE_RECORD = "No Record"


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Render rows as CSV, quoting only values that need it."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


def _section(vehicle, name: str) -> Dict[str, Any]:
    value = getattr(vehicle, name, None)
    return value if isinstance(value, dict) else {}


def extract_price(value: Any) -> Optional[Any]:
    """A price is either a bare number or ``{"amountGBP": n}``; zero counts as missing."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return value or None
    if isinstance(value, dict) and value.get("amountGBP"):
        return value["amountGBP"]
    return None


def format_number(value: Any) -> Any:
    """Drop a trailing .00 so 15995.00 exports as 15995."""
    if isinstance(value, (Decimal, float)) and value == int(value):
        return int(value)
    if isinstance(value, Decimal):
        return str(value.normalize())
    return value


def image_urls(media_data: Dict[str, Any], size: str) -> List[str]:
    images = media_data.get("images")
    if not isinstance(images, list):
        return []
    return [
        image["href"].replace("{resize}", size)
        for image in images
        if isinstance(image, dict) and image.get("href")
    ]


def feature_names(features_data: Any) -> List[str]:
    if not isinstance(features_data, list):
        return []
    return [f["name"] for f in features_data if isinstance(f, dict) and f.get("name")]


def feed_id(company_name: str, dealer_id: Any) -> str:
    """AA Cars feed id: company name with whitespace runs replaced by ``_``, then the dealer id."""
    name = re.sub(r"\s+", "_", company_name)
    return f"{name}_{dealer_id}"


def _digits(value: Any) -> str:
    return re.sub(r"[^\d]", "", str(value or ""))


def _short_vehicle_id(vehicle) -> str:
    return (vehicle.stock_id or "")[-6:]


def _doors(vehicle_data: Dict[str, Any]) -> Any:
    return vehicle_data.get("doors") or vehicle_data.get("numberOfDoors") or ""


def _previous_owners(vehicle_data: Dict[str, Any]) -> Any:
    return vehicle_data.get("previousOwners") or vehicle_data.get("owners") or 0


def _split_address_line(address_line: str):
    """Split "12 High Street" into building number and street."""
    parts = address_line.split(" ") if address_line else []
    building_number = ""
    if parts and parts[0]:
        try:
            float(parts[0])
            building_number = parts[0]
        except ValueError:
            pass
    return building_number, " ".join(parts[1:])


def _first_advertiser(vehicles: Sequence[Any]) -> Dict[str, Any]:
    return _section(vehicles[0], "advertiser_data") if vehicles else {}


def cf247_dealers_csv(
    vehicles: Sequence[Any],
    dealer: Optional[DealerDetails] = None,
    contact_email: Optional[str] = None,
) -> str:
    """
    One dealer row built from the first vehicle's advertiser data.

    Gaps are filled from the dealer account and its credential.
    """
    dealer = dealer or DealerDetails()
    advertiser = _first_advertiser(vehicles)
    location = advertiser.get("location") or {}
    address = dealer.address

    building_number, street_name = _split_address_line(location.get("addressLineOne") or "")

    row = [
        advertiser.get("advertiserId") or dealer.advertiser_id or "",
        advertiser.get("name") or dealer.company_name or dealer.name or "",
        address.get("buildingName") or "",
        building_number or address.get("buildingNumber") or "",
        street_name or address.get("streetName") or "",
        address.get("locality") or "",
        location.get("town") or address.get("town") or "",
        location.get("county") or address.get("county") or "",
        location.get("postCode") or address.get("postcode") or "",
        advertiser.get("phone") or dealer.metadata.get("phone") or "",
        dealer.email or contact_email or "",
        advertiser.get("website") or dealer.metadata.get("websiteUrl") or "",
    ]
    return to_csv(CF247_DEALER_HEADERS, [row])


def _cf247_vehicle_row(vehicle, image_size: str) -> List[Any]:
    vehicle_data = _section(vehicle, "vehicle_data")
    adverts_data = _section(vehicle, "adverts_data")
    retail_adverts = adverts_data.get("retailAdverts") or {}

    price = (
        extract_price(vehicle.forecourt_price_gbp)
        or extract_price(vehicle.total_price_gbp)
        or extract_price(adverts_data.get("forecourtPrice"))
        or extract_price(retail_adverts.get("totalPrice"))
        or extract_price(retail_adverts.get("suppliedPrice"))
        or 0
    )

    return [
        _short_vehicle_id(vehicle),
        vehicle.advertiser_id,
        "",  # CapId
        vehicle.make,
        vehicle.model,
        vehicle.derivative or "",
        vehicle.body_type or "",
        vehicle_data.get("colour") or "",
        vehicle.odometer_reading_miles or 0,
        _doors(vehicle_data),
        vehicle_data.get("engineSize") or "",
        vehicle.fuel_type or "",
        vehicle_data.get("transmissionType") or "",
        vehicle_data.get("insuranceGroup") or "",
        vehicle_data.get("serviceHistory") or NO_SERVICE_RECORD,
        "|".join(feature_names(getattr(vehicle, "features_data", None))),
        "",  # AdditionalOptions
        "|".join(image_urls(_section(vehicle, "media_data"), image_size)),
        _previous_owners(vehicle_data),
        format_number(price),
        vehicle.registration or "",
        vehicle.year_of_manufacture or "",
        adverts_data.get("vehicleUrl") or "",
        "2" if vehicle_data.get("vehicleType") == "commercial" else "1",
        "Y" if retail_adverts.get("vatStatus") == "vat_qualifying" else "N",
        "Y" if retail_adverts.get("vatable") == "true" else "N",
    ]


def cf247_vehicles_csv(vehicles: Sequence[Any], image_size: str = "w800h600") -> str:
    return to_csv(CF247_VEHICLE_HEADERS, (_cf247_vehicle_row(v, image_size) for v in vehicles))


def aacars_dealers_csv(
    vehicles: Sequence[Any],
    dealer: Optional[DealerDetails] = None,
    contact_email: Optional[str] = None,
) -> str:
    dealer = dealer or DealerDetails()
    advertiser = _first_advertiser(vehicles)
    location = advertiser.get("location") or {}
    address = dealer.address

    parts = [
        address.get(key)
        for key in ("buildingName", "buildingNumber", "streetName", "locality")
        if address.get(key)
    ]
    town = location.get("town") or address.get("town")
    if town:
        parts.append(town)
    full_address = ", ".join(str(p) for p in parts) if parts else location.get("addressLineOne") or ""

    dealer_name = advertiser.get("name") or dealer.company_name or dealer.name or ""
    dealer_id = advertiser.get("advertiserId") or dealer.advertiser_id or dealer.dealer_id or "unknown"

    row = [
        feed_id(dealer_name or "Unknown", dealer_id),
        dealer_name,
        full_address,
        location.get("postCode") or address.get("postcode") or "",
        advertiser.get("phone") or dealer.metadata.get("phone") or "",
        dealer.email or contact_email or "",
    ]
    return to_csv(AACARS_DEALER_HEADERS, [row])


def _aacars_vehicle_row(vehicle, image_size: str) -> List[Any]:
    vehicle_data = _section(vehicle, "vehicle_data")
    adverts_data = _section(vehicle, "adverts_data")
    advertiser = _section(vehicle, "advertiser_data")
    retail_adverts = adverts_data.get("retailAdverts") or {}

    price = (
        extract_price(vehicle.forecourt_price_gbp)
        or extract_price(vehicle.total_price_gbp)
        or extract_price(adverts_data.get("forecourtPrice"))
        or 0
    )

    engine_digits = _digits(vehicle_data.get("engineSize"))
    service_history = vehicle_data.get("serviceHistory") or NO_SERVICE_RECORD

    return [
        feed_id(
            advertiser.get("name") or "Unknown",
            advertiser.get("advertiserId") or vehicle.dealer_id,
        ),
        _short_vehicle_id(vehicle),
        re.sub(r"\s", "", (vehicle.registration or "").upper()),
        vehicle_data.get("colour") or "",
        vehicle.fuel_type or "",
        vehicle.year_of_manufacture or "",
        vehicle.odometer_reading_miles or 0,
        vehicle.body_type or "",
        _digits(_doors(vehicle_data)),
        vehicle.make,
        vehicle.model,
        vehicle.derivative or "",
        f"{engine_digits}cc" if engine_digits else "",
        format_number(price),
        vehicle_data.get("transmissionType") or "",
        "",  # description
        ",".join(feature_names(getattr(vehicle, "features_data", None))),
        ",".join(image_urls(_section(vehicle, "media_data"), image_size)),
        "0" if service_history == NO_SERVICE_RECORD else "1",
        str(_previous_owners(vehicle_data)),
        "Y" if retail_adverts.get("vatStatus") == "vat_qualifying" else "N",
        adverts_data.get("vehicleUrl") or "",
        "",  # youtuberef
    ]


def aacars_vehicles_csv(vehicles: Sequence[Any], image_size: str = "w1280h960") -> str:
    return to_csv(AACARS_VEHICLE_HEADERS, (_aacars_vehicle_row(v, image_size) for v in vehicles))
