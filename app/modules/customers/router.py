# app/modules/customers/router.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.config.database import get_db
from .service import CustomerService
from .schemas import CustomerCreateRequest, CustomerCreatedResponse, CustomerResponse

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=CustomerCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_data: CustomerCreateRequest,
    db: Session = Depends(get_db)
):
    """Registrar cliente (sólo el nombre es obligatorio)"""
    return CustomerService(db).create_customer(customer_data)


@router.get("", response_model=List[CustomerResponse])
def list_customers(db: Session = Depends(get_db)):
    return CustomerService(db).list_customers()


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    return CustomerService(db).get_customer(customer_id)
