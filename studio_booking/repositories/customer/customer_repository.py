"""
Customer repository.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_booking.core.exceptions import RepositoryError
from studio_booking.models.customer.customer import Customer
from studio_booking.repositories.base.base_repository import BaseRepository


class CustomerRepository(BaseRepository[Customer]):

    def __init__(self, db: Session):
        super().__init__(Customer, db)

    def find_by_phone(self, phone: str) -> Optional[Customer]:
        try:
            return self.db.query(Customer).filter(Customer.phone == phone).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find customer by phone failed: {str(e)}") from e

    def get_or_create(
        self,
        full_name: str,
        phone: str,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Customer:
        """Reuse the customer with this phone number, refreshing contact fields."""
        customer = self.find_by_phone(phone)
        if customer is None:
            return self.create(Customer(full_name=full_name, phone=phone, email=email, user_id=user_id))

        customer.full_name = full_name
        if email:
            customer.email = email
        if user_id and not customer.user_id:
            customer.user_id = user_id
        self.db.flush()
        return customer
