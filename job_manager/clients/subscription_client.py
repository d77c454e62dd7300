"""
Subscription Service Client
"""

from job_manager.utils.service_client import ServiceClient


class SubscriptionServiceClient(ServiceClient):

    async def is_premium(self, company_id: str) -> bool:
        """
        GET /api/subscriptions/company/{id}/is-premium

        A company the subscription service does not know is not premium.
        """
        response = await self.get(f"/api/subscriptions/company/{company_id}/is-premium")
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return bool(response.json()["isPremium"])
