"""DynamoDB service wrapper for type-safe table operations.

Documents are stored whole, one item per package or quote. Writes that
must not lose a concurrent update go through put_versioned(), which makes
the put conditional on the stored version (compare-and-swap).
"""

import json
import os
from decimal import Decimal
from typing import Any, TypeVar

import boto3
from botocore.exceptions import ClientError
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

# Module-level singleton for connection reuse
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Args:
        environment: Environment name. Only used on first call.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService(environment)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_item(model: BaseModel) -> dict[str, Any]:
    """Convert a model to a DynamoDB item (floats become Decimal)."""
    item: dict[str, Any] = json.loads(
        model.model_dump_json(exclude_none=True), parse_float=Decimal
    )
    return item


def to_attribute(value: Any) -> Any:
    """Convert a JSON-compatible value for storage (floats become Decimal)."""
    return json.loads(json.dumps(value, default=_json_default), parse_float=Decimal)


def from_attribute(value: Any) -> Any:
    """Convert a stored value back to plain JSON types (Decimal to int/float)."""
    return json.loads(json.dumps(value, default=_json_default))


def from_item(model_cls: type[T], item: dict[str, Any]) -> T:
    """Convert a DynamoDB item back to a model.

    Goes through JSON so dates, enums and Decimal numbers are parsed
    the same way as API input.
    """
    return model_cls.model_validate_json(json.dumps(item, default=_json_default))


class DynamoDBService:
    """Service for DynamoDB operations with environment-aware table names."""

    def __init__(self, environment: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            environment: Environment name (dev/prod). Defaults to ENVIRONMENT env var.
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        # Allow override via DYNAMODB_TABLE_PREFIX for testing
        self.name_prefix = os.getenv(
            "DYNAMODB_TABLE_PREFIX", f"quote-engine-{self.environment}"
        )
        self._dynamodb = boto3.resource("dynamodb")

    def _table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        """Get DynamoDB table resource."""
        return self._dynamodb.Table(self._table_name(table))

    # Generic CRUD operations

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Uses a strongly consistent read so a read-modify-write cycle
        always starts from the latest version.

        Args:
            table: Table name without prefix
            key: Primary key dict

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(Key=key, ConsistentRead=True)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write
            expression_attribute_names: Names for the condition (for reserved words)
            expression_attribute_values: Values for the condition

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if expression_attribute_values:
                kwargs["ExpressionAttributeValues"] = expression_attribute_values

            self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def put_versioned(
        self,
        table: str,
        item: dict[str, Any],
        key_name: str,
        expected_version: int | None,
        expected_attributes: dict[str, Any] | None = None,
    ) -> bool:
        """Put a document only if its stored version is unchanged.

        Args:
            table: Table name without prefix
            item: Full document to store
            key_name: Partition key attribute of the table
            expected_version: Version read before computing the update,
                or None when creating a new document
            expected_attributes: Further stored values that must be unchanged,
                for writes that do not bump the version (e.g. updated_at)

        Returns:
            True if written, False if another write got there first
        """
        if expected_version is None:
            return self.put_item(
                table,
                item,
                condition_expression="attribute_not_exists(#pk)",
                expression_attribute_names={"#pk": key_name},
            )

        conditions = ["#version = :expected_version"]
        names = {"#version": "version"}
        values: dict[str, Any] = {":expected_version": expected_version}
        for index, (name, value) in enumerate((expected_attributes or {}).items()):
            conditions.append(f"#attr{index} = :attr{index}")
            names[f"#attr{index}"] = name
            values[f":attr{index}"] = value

        return self.put_item(
            table,
            item,
            condition_expression=" AND ".join(conditions),
            expression_attribute_names=names,
            expression_attribute_values=values,
        )

    def delete_item(
        self,
        table: str,
        key: dict[str, Any],
        expected_version: int | None = None,
    ) -> bool:
        """Delete an item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            expected_version: Only delete if the stored version matches

        Returns:
            True if deleted (or didn't exist), False if the version changed
        """
        kwargs: dict[str, Any] = {"Key": key}
        if expected_version is not None:
            kwargs["ConditionExpression"] = "#version = :expected_version"
            kwargs["ExpressionAttributeNames"] = {"#version": "version"}
            kwargs["ExpressionAttributeValues"] = {
                ":expected_version": expected_version
            }
        try:
            self._get_table(table).delete_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        limit: int | None = None,
        scan_index_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """Query table or GSI.

        Args:
            table: Table name without prefix
            key_condition: Boto3 Key condition
            index_name: GSI name (optional)
            filter_expression: Additional filter (optional)
            limit: Max items to return
            scan_index_forward: Sort order (True=ascending)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_index_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if limit:
            kwargs["Limit"] = limit

        response = self._get_table(table).query(**kwargs)
        items: list[dict[str, Any]] = response.get("Items", [])
        return items

    def scan(
        self,
        table: str,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Scan a table, following pagination.

        Args:
            table: Table name without prefix
            filter_expression: Boto3 Attr condition (optional)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        table_resource = self._get_table(table)
        while True:
            response = table_resource.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key
