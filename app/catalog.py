# app/catalog.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd


@dataclass(frozen=True)
class Service:
    id: int
    name: str
    description: str
    price: str


SERVICES: tuple = (
    Service(1, "Complete Blood Count (CBC)", "Basic blood profile", "₹250"),
    Service(2, "Thyroid Profile (T3,T4,TSH)", "Thyrocare-style panel", "₹650"),
    Service(3, "Lipid Profile", "Cholesterol and triglycerides", "₹450"),
    Service(4, "COVID-19 RT-PCR", "Gold-standard viral test", "₹1200"),
    Service(5, "Diabetes (HbA1c)", "Long-term glucose marker", "₹600"),
)


def filter_services(services: Sequence[Service], query: str) -> List[Service]:
    """Substring search over name + description, case-insensitive, order kept."""
    q = (query or "").lower()
    return [s for s in services if q in f"{s.name} {s.description}".lower()]


def get_service(services: Sequence[Service], name: str) -> Optional[Service]:
    for s in services:
        if s.name == name:
            return s
    return None


def rate_list_frame(services: Sequence[Service]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Test": s.name, "Details": s.description, "Price": s.price} for s in services]
    )


def rate_list_csv(services: Sequence[Service]) -> bytes:
    return rate_list_frame(services).to_csv(index=False).encode("utf-8")
