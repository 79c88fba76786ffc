"""
Stock feed exports for the CF247 and AA Cars listing partners.

Only vehicles in the exported lifecycle state (FORECOURT) are ever read.
The archive is built in memory and returned as bytes.
"""

import io
import zipfile
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..constants import ExportFormat
from ..context.operation_context import operation
from ..db.db_dealer_models import Dealer
from ..db.db_stock_models import StockVehicle
from ..exceptions import ErrorCode, ValidationError
from ..processing.credential_assignment import reconcile
from ..processing.feed_export import (
    aacars_dealers_csv,
    aacars_vehicles_csv,
    cf247_dealers_csv,
    cf247_vehicles_csv,
)
from ..schemas.export_schemas import DealerDetails, ExportArchive, ExportRequest, ExportStats
from ..utils.crud_helpers import get_record_by_id, wrap_db_error
from ..utils.store_config_utils import get_credential
from .base_service import SessionManagedService

# Archive member names per format: (dealers file, vehicles file)
FEED_FILES = {
    ExportFormat.CF247: ("Dealers.csv", "Vehicles.csv"),
    ExportFormat.AA_CARS: ("dealers.csv", "aacars.csv"),
}


class ExportService(SessionManagedService):
    """Builds feed archives from the cached forecourt stock."""

    @property
    def exported_state(self) -> str:
        return self.config.export.exported_state

    def _forecourt_vehicles(self, dealer_id: Optional[str] = None) -> List[StockVehicle]:
        try:
            query = self.session.query(StockVehicle).filter(
                StockVehicle.lifecycle_state == self.exported_state
            )
            if dealer_id:
                query = query.filter(StockVehicle.dealer_id == dealer_id)
            return query.order_by(StockVehicle.stock_id).all()
        except SQLAlchemyError as e:
            raise wrap_db_error("list", StockVehicle, e, dealer_id=dealer_id) from e

    @operation()
    def get_export_stats(self) -> ExportStats:
        """Distinct advertisers and number of vehicles currently on the forecourt."""
        try:
            advertiser_rows = (
                self.session.query(StockVehicle.advertiser_data)
                .filter(StockVehicle.lifecycle_state == self.exported_state)
                .all()
            )
            total_vehicles = (
                self.session.query(func.count(StockVehicle.id))
                .filter(StockVehicle.lifecycle_state == self.exported_state)
                .scalar()
            )
        except SQLAlchemyError as e:
            raise wrap_db_error("count", StockVehicle, e) from e

        advertiser_ids = {
            data.get("advertiserId")
            for (data,) in advertiser_rows
            if isinstance(data, dict) and data.get("advertiserId")
        }
        return ExportStats(total_dealers=len(advertiser_ids), total_vehicles=total_vehicles or 0)

    def _dealer_details(self, dealer_id: Optional[str]) -> Optional[DealerDetails]:
        """Dealer account plus the primary ID and company name from its credential."""
        if not dealer_id:
            return None
        dealer = get_record_by_id(self.session, Dealer, dealer_id)
        if not dealer:
            return None

        details = DealerDetails(
            dealer_id=dealer.id,
            name=dealer.name,
            email=dealer.email,
            metadata=dealer.dealer_metadata or {},
        )
        credential = get_credential(self.session, dealer.id)
        if credential:
            details.advertiser_id = reconcile(credential).primary_id or None
            details.company_name = credential.company_name
        return details

    def _render(
        self,
        request: ExportRequest,
        vehicles: List[StockVehicle],
        dealer: Optional[DealerDetails],
    ) -> Dict[str, str]:
        dealers_file, vehicles_file = FEED_FILES[request.format]
        files = {}

        if request.format == ExportFormat.AA_CARS:
            if request.include_dealers:
                files[dealers_file] = aacars_dealers_csv(vehicles, dealer, request.contact_email)
            if request.include_vehicles:
                files[vehicles_file] = aacars_vehicles_csv(
                    vehicles, self.config.export.aacars_image_size
                )
        else:
            if request.include_dealers:
                files[dealers_file] = cf247_dealers_csv(vehicles, dealer, request.contact_email)
            if request.include_vehicles:
                files[vehicles_file] = cf247_vehicles_csv(
                    vehicles, self.config.export.cf247_image_size
                )
        return files

    @operation()
    def build_export(self, request: ExportRequest) -> ExportArchive:
        """
        Build a ZIP archive of feed files.

        The archive is empty when there is no forecourt stock to export.

        Raises:
            ValidationError: If neither dealers nor vehicles were requested
        """
        if not request.include_dealers and not request.include_vehicles:
            raise ValidationError(
                "At least one data type must be selected",
                field="include_dealers",
                error_code=ErrorCode.MISSING_REQUIRED,
            )

        vehicles = self._forecourt_vehicles(request.dealer_id)

        files = {}
        if vehicles:
            # Without a selected dealer the first vehicle's dealer fills the gaps
            dealer = self._dealer_details(request.dealer_id or vehicles[0].dealer_id)
            files = self._render(request, vehicles, dealer)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for name, content in files.items():
                archive.writestr(name, content)

        export_date = request.export_date or datetime.now(timezone.utc).date()
        prefix = "aacars-export" if request.format == ExportFormat.AA_CARS else "cf247-export"
        file_name = f"{prefix}-{export_date.isoformat()}.zip"

        self.logger.info(
            "Export built",
            extra={
                "format": request.format.value,
                "dealer_id": request.dealer_id,
                "vehicles": len(vehicles),
                "files": ",".join(files) or "none",
            },
        )
        return ExportArchive(
            file_name=file_name,
            content=buffer.getvalue(),
            files=list(files),
            vehicle_count=len(vehicles),
        )
