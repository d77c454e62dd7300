"""
Company Service Client
"""

from typing import Optional

from job_manager.core.logger import logger
from job_manager.utils.service_client import ServiceClient


class CompanyServiceClient(ServiceClient):

    async def get_company_country(self, company_id: str) -> Optional[str]:
        """
        GET /api/companies/{id}/country

        Returns:
            The country code exactly as stored, or None if the company does not exist
        """
        response = await self.get(f"/api/companies/{company_id}/country")
        if response.status_code == 404:
            logger.debug("Company not found in company service", metadata={"companyId": company_id})
            return None
        response.raise_for_status()
        return response.text
