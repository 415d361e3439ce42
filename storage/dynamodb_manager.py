"""DynamoDB manager for the shared key-value record store."""
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from storage.errors import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)


class DynamoDBManager:
    """
    Key-value store backed by a DynamoDB table.

    Each named collection is one item: the hash key ``key`` holds the
    collection name and the string attribute ``value`` holds its JSON text.
    Single-item puts are atomic, there is no cross-key transaction.
    """

    KEY_ATTRIBUTE = 'key'
    VALUE_ATTRIBUTE = 'value'

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region, defaults to the environment's region
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBManager for table: {table_name}")

    def get_item(self, key: str) -> Optional[str]:
        """
        Read the raw value stored under a key.

        Args:
            key: Collection name

        Returns:
            Stored string, or None if the key is absent

        Raises:
            StoreReadError: If DynamoDB rejects the read
        """
        try:
            response = self.table.get_item(
                Key={self.KEY_ATTRIBUTE: key},
                ConsistentRead=True
            )
        except ClientError as e:
            logger.error(f"Error reading key '{key}' from DynamoDB: {e}")
            raise StoreReadError(f"Failed to read '{key}'") from e

        item = response.get('Item')
        if item is None:
            return None
        return item.get(self.VALUE_ATTRIBUTE)

    def set_item(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Args:
            key: Collection name
            value: String to store

        Raises:
            StoreWriteError: If DynamoDB rejects the write
        """
        try:
            self.table.put_item(
                Item={self.KEY_ATTRIBUTE: key, self.VALUE_ATTRIBUTE: value}
            )
        except ClientError as e:
            logger.error(f"Error writing key '{key}' to DynamoDB: {e}")
            raise StoreWriteError(f"Failed to write '{key}'") from e

    def remove_item(self, key: str) -> None:
        """
        Delete a key. Deleting an absent key is not an error.

        Args:
            key: Collection name

        Raises:
            StoreWriteError: If DynamoDB rejects the delete
        """
        try:
            self.table.delete_item(Key={self.KEY_ATTRIBUTE: key})
        except ClientError as e:
            logger.error(f"Error deleting key '{key}' from DynamoDB: {e}")
            raise StoreWriteError(f"Failed to delete '{key}'") from e
