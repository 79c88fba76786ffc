"""
Tests for ExportService archive building and stats.
"""

import csv
import io
import zipfile
from datetime import date

import pytest

from dealer_console.constants import ExportFormat
from dealer_console.exceptions import ValidationError
from dealer_console.schemas.export_schemas import ExportRequest
from tests.fixtures.factories import DealerFactory, StockVehicleFactory, StoreConfigFactory


def read_member(archive, name):
    with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
        return list(csv.DictReader(io.StringIO(zf.read(name).decode("utf-8"))))


def member_names(archive):
    with zipfile.ZipFile(io.BytesIO(archive.content)) as zf:
        return zf.namelist()


class TestExportStats:
    def test_counts_forecourt_only(self, export_service):
        StockVehicleFactory.create_batch(2)
        StockVehicleFactory(
            advertiser_id="20099999",
            advertiser_data={"advertiserId": "20099999", "name": "York Motors"},
        )
        StockVehicleFactory(lifecycle_state="SOLD", advertiser_data={"advertiserId": "30000000"})

        stats = export_service.get_export_stats()

        assert stats.total_dealers == 2
        assert stats.total_vehicles == 3

    def test_empty(self, export_service):
        stats = export_service.get_export_stats()

        assert stats.total_dealers == 0
        assert stats.total_vehicles == 0


class TestCF247Export:
    def test_archive_contents(self, export_service):
        dealer = DealerFactory()
        vehicle = StockVehicleFactory(dealer_id=dealer.id)
        StockVehicleFactory(dealer_id=dealer.id, lifecycle_state="SOLD")

        archive = export_service.build_export(ExportRequest(export_date=date(2026, 3, 1)))

        assert archive.file_name == "cf247-export-2026-03-01.zip"
        assert archive.content_type == "application/zip"
        assert archive.files == ["Dealers.csv", "Vehicles.csv"]
        assert sorted(member_names(archive)) == ["Dealers.csv", "Vehicles.csv"]
        assert archive.vehicle_count == 1

        [row] = read_member(archive, "Vehicles.csv")
        assert row["VehicleId"] == vehicle.stock_id[-6:]
        assert row["DealerId"] == "10012345"
        assert row["Make"] == "Ford"
        assert row["Range"] == "Focus"
        assert row["EngineSize"] == "998"
        assert row["ServiceHistory"] == "Full"
        assert row["Options"] == "Bluetooth|Sat Nav"
        assert row["AdditionalOptions"] == ""
        assert row["PictureURLs"] == (
            "https://img.example.com/a/w800h600.jpg|https://img.example.com/b/w800h600.jpg"
        )
        assert row["NoOfPreviousOwners"] == "2"
        assert row["Price"] == "11995"
        assert row["Registration"] == "ab12 cde"
        assert row["VehicleType"] == "1"
        assert row["VAT Qualifying"] == "N"
        assert row["Price Includes VAT"] == "N"

        [dealer_row] = read_member(archive, "Dealers.csv")
        assert dealer_row["DealerId"] == "10012345"
        assert dealer_row["DealerName"] == "Leeds Car Centre"
        assert dealer_row["BuildingName"] == "Unit 4"
        assert dealer_row["BuildingNumber"] == "25"
        assert dealer_row["StreetName"] == "Kirkgate"
        assert dealer_row["Locality"] == "Old Town"
        assert dealer_row["Town"] == "Leeds"
        assert dealer_row["Postcode"] == "LS2 2BB"
        assert dealer_row["EmailAddress"] == dealer.email

    def test_dealer_row_falls_back_to_credential(self, export_service):
        dealer = DealerFactory()
        StoreConfigFactory(dealer_id=dealer.id, company_name="Fallback Motors Ltd")
        StockVehicleFactory(dealer_id=dealer.id, advertiser_data=None)

        archive = export_service.build_export(ExportRequest(dealer_id=dealer.id, include_vehicles=False))

        assert archive.files == ["Dealers.csv"]
        [dealer_row] = read_member(archive, "Dealers.csv")
        assert dealer_row["DealerId"] == "AD-1"
        assert dealer_row["DealerName"] == "Fallback Motors Ltd"
        assert dealer_row["BuildingNumber"] == "12"
        assert dealer_row["StreetName"] == "High Street"
        assert dealer_row["Postcode"] == "LS1 1AA"
        assert dealer_row["Phone"] == "01234 567890"

    def test_filter_by_dealer(self, export_service):
        dealer = DealerFactory()
        other = DealerFactory()
        StockVehicleFactory(dealer_id=dealer.id)
        StockVehicleFactory(dealer_id=other.id)

        archive = export_service.build_export(ExportRequest(dealer_id=dealer.id))

        assert archive.vehicle_count == 1
        assert len(read_member(archive, "Vehicles.csv")) == 1

    def test_no_stock_gives_empty_archive(self, export_service):
        StockVehicleFactory(lifecycle_state="SOLD")

        archive = export_service.build_export(ExportRequest(export_date=date(2026, 3, 1)))

        assert archive.files == []
        assert archive.vehicle_count == 0
        assert member_names(archive) == []

    def test_nothing_selected(self, export_service):
        with pytest.raises(ValidationError) as exc_info:
            export_service.build_export(ExportRequest(include_dealers=False, include_vehicles=False))

        assert exc_info.value.message == "At least one data type must be selected"


class TestAACarsExport:
    def test_archive_contents(self, export_service):
        dealer = DealerFactory()
        StockVehicleFactory(dealer_id=dealer.id)

        archive = export_service.build_export(
            ExportRequest(format=ExportFormat.AA_CARS, export_date=date(2026, 3, 1))
        )

        assert archive.file_name == "aacars-export-2026-03-01.zip"
        assert archive.files == ["dealers.csv", "aacars.csv"]

        [row] = read_member(archive, "aacars.csv")
        assert row["feedid"] == "Leeds_Car_Centre_10012345"
        assert row["registration"] == "AB12CDE"
        assert row["doors"] == "5"
        assert row["enginesize"] == "998cc"
        assert row["price"] == "11995"
        assert row["options"] == "Bluetooth,Sat Nav"
        assert row["picturerefs"] == (
            "https://img.example.com/a/w1280h960.jpg,https://img.example.com/b/w1280h960.jpg"
        )
        assert row["servicehistory"] == "1"
        assert row["previousowners"] == "2"
        assert row["plusvat"] == "N"
        assert row["deeplink"] == "https://listings.example.com/vehicle/1"

        [dealer_row] = read_member(archive, "dealers.csv")
        assert dealer_row["feed_id"] == "Leeds_Car_Centre_10012345"
        assert dealer_row["dealername"] == "Leeds Car Centre"
        assert dealer_row["address"] == "Unit 4, 12, High Street, Old Town, Leeds"
        assert dealer_row["postcode"] == "LS2 2BB"
        assert dealer_row["email"] == dealer.email

    def test_contact_email_used_without_dealer(self, export_service):
        StockVehicleFactory()

        archive = export_service.build_export(
            ExportRequest(
                format=ExportFormat.AA_CARS,
                include_vehicles=False,
                contact_email="feeds@example.com",
            )
        )

        [dealer_row] = read_member(archive, "dealers.csv")
        assert dealer_row["email"] == "feeds@example.com"
        assert dealer_row["address"] == "Leeds"
