from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from pm_api.entities import OtpCode


class OtpRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Optional[OtpCode]:
        return self.db.scalar(select(OtpCode).where(OtpCode.email == email))

    def save(self, otp: OtpCode) -> OtpCode:
        self.db.add(otp)
        self.db.flush()
        return otp

    def delete(self, otp: OtpCode) -> None:
        self.db.delete(otp)
        self.db.flush()
