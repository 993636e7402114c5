"""Example 1: Storing records in an S3-compatible bucket.

Walks through the record lifecycle against a local MinIO server:
- Mapping a pydantic model onto a stored type
- Insert, update with optimistic versioning, fetch
- Listing a type and removing records

Requires a running endpoint, e.g.:
  docker run -p 9000:9000 -e MINIO_ROOT_USER=minio -e MINIO_ROOT_PASSWORD=minio123 \
      minio/minio server /data
"""

import logging
import os

from pydantic import BaseModel

from jsonbucket import (
    ObjectNotFoundError,
    Record,
    TypeMapping,
    VersionStrategy,
    open_bridge,
    parse_storage_uri,
)


class Customer(BaseModel):
    """Customer record."""

    id: str
    name: str
    age: int
    tier: str = "Standard"


CUSTOMER = TypeMapping.from_model(
    Customer,
    primary_key="id",
    type_name="com.example.Customer",
    version_strategy=VersionStrategy.NUMBER,
)


def main():
    """Run the basic usage example."""
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    config = parse_storage_uri(
        os.environ.get("JSONBUCKET_STORAGE_URI", "s3+http://localhost:9000/jsonbucket-example"),
        access_key=os.environ.get("JSONBUCKET_ACCESS_KEY", "minio"),
        secret_key=os.environ.get("JSONBUCKET_SECRET_KEY", "minio123"),
    )
    bridge = open_bridge(config)

    print("=" * 80)
    print("EXAMPLE 1: BASIC USAGE")
    print("=" * 80)

    # Section 1: Insert
    print("\n1. Inserting customers")
    alice = Record(CUSTOMER, {"id": "c1", "name": "Alice", "age": 30, "tier": "Gold"})
    bob = Record(CUSTOMER, {"id": "c2", "name": "Bob", "age": 25})
    bridge.insert(alice)
    bridge.insert(bob)
    print(f"   stored {bridge.storage_key(alice)} (version {alice.version})")
    print(f"   stored {bridge.storage_key(bob)} (version {bob.version})")

    # Section 2: Update
    print("\n2. Updating Alice's age")
    alice.fields["age"] = 31
    bridge.update(alice, ["age"])
    print(f"   version is now {alice.version}")

    # Section 3: Fetch
    print("\n3. Fetching Alice")
    loaded = bridge.fetch(Record(CUSTOMER, {"id": "c1"}))
    print(f"   {loaded.fields} (version {loaded.version})")

    # Section 4: List
    print("\n4. Listing customers")
    for record in bridge.list(CUSTOMER):
        print(f"   - {record.fields['id']}")

    # Section 5: Delete
    print("\n5. Deleting customers")
    for record in (alice, bob):
        bridge.delete(record)
    try:
        bridge.delete(alice)
    except ObjectNotFoundError as e:
        print(f"   second delete: {e}")

    print("\nDone.")


if __name__ == "__main__":
    main()
