from app.domains.sponsors.entities import Sponsor
from app.domains.sponsors.services import SponsorDirectory, SponsorMembershipResolver

__all__ = [
    "Sponsor",
    "SponsorDirectory",
    "SponsorMembershipResolver"
]
