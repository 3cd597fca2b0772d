from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from medicare.config.database import get_db
from medicare.dependencies import get_current_user
from medicare.models.user import User
from medicare.schemas.payment import (
    PaymentInitiate,
    PaymentInitiationResponse,
    PaymentResponse,
    PaymentStatusResponse,
    PaymentVerificationResponse,
    PaymentVerify,
)
from medicare.services.khalti_service import KhaltiGateway, get_payment_gateway
from medicare.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])

@router.post("/initiate", response_model=PaymentInitiationResponse)
def initiate_payment(
    payload: PaymentInitiate,
    current_user: User = Depends(get_current_user),
    gateway: KhaltiGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db)
):
    """Pick cash, Khalti or eSewa for one of your appointments"""
    return PaymentService.initiate_payment(
        db,
        current_user.id,
        payload.appointment_id,
        payload.amount,
        payload.payment_method,
        gateway=gateway
    )

@router.post("/verify", response_model=PaymentVerificationResponse)
def verify_payment(
    payload: PaymentVerify,
    current_user: User = Depends(get_current_user),
    gateway: KhaltiGateway = Depends(get_payment_gateway),
    db: Session = Depends(get_db)
):
    """Confirm a Khalti payment after the user returns from the gateway"""
    return PaymentService.verify_payment(db, payload.pidx, gateway=gateway)

@router.get("/status/{appointment_id}", response_model=PaymentStatusResponse)
def get_payment_status(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return PaymentService.get_payment_status(db, current_user.role, current_user.id, appointment_id)

@router.post("/cash-complete/{appointment_id}", response_model=PaymentResponse)
def mark_cash_complete(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record that a cash payment was settled at the clinic (doctor or admin)"""
    return PaymentService.mark_cash_complete(db, current_user.role, current_user.id, appointment_id)
