# app/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.data.database import get_db
from app.domain.schemas import OrderOut, ReportOut, StatusIn
from app.services.export_service import export_pdf, export_xlsx, report_filename
from app.services.order_service import OrderService
from app.services.report_service import ReportService
from app.services.session_service import CurrentUser
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/orders", response_model=List[OrderOut])
def list_all_orders(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return OrderService(db).list_all_orders()


@router.patch("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: StatusIn,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = OrderService(db)
    try:
        order = svc.update_status(order_id, payload.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Admin {admin.id} set order {order_id} to {payload.status}")
    return order


@router.get("/reports/summary", response_model=ReportOut)
def report_summary(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return ReportService(db).build().as_dict()


@router.get("/reports/export.xlsx")
def report_xlsx(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    report = ReportService(db).build()
    return _attachment(export_xlsx(report), XLSX_MEDIA_TYPE, report_filename("xlsx"))


@router.get("/reports/export.pdf")
def report_pdf(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    report = ReportService(db).build()
    return _attachment(export_pdf(report), "application/pdf", report_filename("pdf"))
