"""
Base repository pattern for MongoDB data access.

Documents are keyed by string ids (UUIDs), never ObjectIds.
All collection-backed repositories inherit from BaseRepository.
"""

from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection

from job_manager.core.logger import logger


class BaseRepository:
    """
    Base repository providing generic CRUD operations for a MongoDB collection.

    Usage:
        class CompanyRepository(BaseRepository):
            def __init__(self, collection: AsyncIOMotorCollection):
                super().__init__(collection)
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection
        self.collection_name = collection.name

    async def create(self, document: Dict[str, Any], correlation_id: Optional[str] = None) -> str:
        """
        Insert a new document.

        Returns:
            str: ID of created document
        """
        try:
            result = await self.collection.insert_one(document)

            logger.info(
                f"Document created in {self.collection_name}",
                correlation_id=correlation_id,
                metadata={"collection": self.collection_name, "documentId": str(result.inserted_id)}
            )

            return str(result.inserted_id)

        except Exception as e:
            logger.error(
                f"Failed to create document in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name}
            )
            raise

    async def find_by_id(
        self,
        document_id: str,
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self.find_one({"_id": document_id}, correlation_id=correlation_id)

    async def find_one(
        self,
        query: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        correlation_id: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        try:
            logger.debug(
                f"Finding document in {self.collection_name}",
                correlation_id=correlation_id,
                metadata={"collection": self.collection_name, "query": query}
            )

            if sort:
                return await self.collection.find_one(query, sort=sort)
            return await self.collection.find_one(query)

        except Exception as e:
            logger.error(
                f"Error finding document in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "query": query}
            )
            raise

    async def find_many(
        self,
        query: Dict[str, Any],
        skip: int = 0,
        limit: Optional[int] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        correlation_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Find documents matching query.

        Args:
            query: MongoDB query filter
            skip: Number of documents to skip
            limit: Maximum number of documents to return
            sort: Sort specification
        """
        try:
            cursor = self.collection.find(query)

            if sort:
                cursor = cursor.sort(sort)

            cursor = cursor.skip(skip)

            if limit:
                cursor = cursor.limit(limit)

            documents = await cursor.to_list(length=limit)

            logger.debug(
                f"Found {len(documents)} documents in {self.collection_name}",
                correlation_id=correlation_id,
                metadata={"collection": self.collection_name, "count": len(documents)}
            )

            return documents

        except Exception as e:
            logger.error(
                f"Error finding documents in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "query": query}
            )
            raise

    async def update(
        self,
        query: Dict[str, Any],
        update_data: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> bool:
        """
        Update the single document matching query.

        The query may carry extra conditions besides the id; a document that
        no longer satisfies them is left untouched.

        Returns:
            bool: True if a document matched
        """
        try:
            result = await self.collection.update_one(query, update_data)

            matched = result.matched_count > 0

            if matched:
                logger.debug(
                    f"Document updated in {self.collection_name}",
                    correlation_id=correlation_id,
                    metadata={"collection": self.collection_name, "query": query}
                )
            else:
                logger.warning(
                    f"No document matched update in {self.collection_name}",
                    correlation_id=correlation_id,
                    metadata={"collection": self.collection_name, "query": query}
                )

            return matched

        except Exception as e:
            logger.error(
                f"Error updating document in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "query": query}
            )
            raise

    async def delete(self, query: Dict[str, Any], correlation_id: Optional[str] = None) -> bool:
        try:
            result = await self.collection.delete_one(query)

            success = result.deleted_count > 0

            logger.debug(
                f"Delete in {self.collection_name} {'removed' if success else 'matched no'} document",
                correlation_id=correlation_id,
                metadata={"collection": self.collection_name, "query": query}
            )

            return success

        except Exception as e:
            logger.error(
                f"Error deleting document from {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name, "query": query}
            )
            raise

    async def count(self, query: Dict[str, Any], correlation_id: Optional[str] = None) -> int:
        try:
            return await self.collection.count_documents(query)

        except Exception as e:
            logger.error(
                f"Error counting documents in {self.collection_name}",
                correlation_id=correlation_id,
                error=e,
                metadata={"collection": self.collection_name}
            )
            raise
