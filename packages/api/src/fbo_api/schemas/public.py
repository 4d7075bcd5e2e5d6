# This project was developed with assistance from AI tools.
"""Unauthenticated reference-data and certificate verification schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class DistrictItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ProvinceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    districts: list[DistrictItem] = []


class CertificateVerification(BaseModel):
    """Public record for a valid certificate number."""

    certificate_number: str
    organization_name: str
    applicant_name: str
    issued_date: datetime | None = None
    address: str
    district: str | None = None
    province: str | None = None
    valid: bool = True
