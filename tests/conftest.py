"""Shared test fixtures for jsonbucket tests."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import BaseModel

from jsonbucket import BucketConfig, CloudStorageBridge, JsonBridge, TypeMapping, VersionStrategy
from jsonbucket.http import HttpTransport
from tests.fakes import FakeBucketBackend

BASE_URL = "http://storage.example.com"

# --- Test record types ---


class Customer(BaseModel):
    id: str
    name: str
    age: int
    tier: str = "Standard"
    joined: date | None = None


class Product(BaseModel):
    sku: int
    name: str
    price: float


class Note(BaseModel):
    text: str


CUSTOMER = TypeMapping.from_model(
    Customer,
    primary_key="id",
    type_name="com.example.Customer",
    version_strategy=VersionStrategy.NUMBER,
)

PRODUCT = TypeMapping.from_model(Product, primary_key="sku", type_name="com.example.Product")

NOTE = TypeMapping.from_model(Note, type_name="com.example.Note", url="notes/")


@pytest.fixture
def cloud_config() -> BucketConfig:
    return BucketConfig(
        base_url=BASE_URL,
        bucket="test-bucket",
        access_key="AKIDEXAMPLE",
        secret_key="wJalrXUtnFEMI/K7MDENG/bPxRfiCYEXAMPLEKEY",
    )


@pytest.fixture
def json_config() -> BucketConfig:
    return BucketConfig(base_url=f"{BASE_URL}/api", variant="json")


@pytest.fixture
def backend() -> FakeBucketBackend:
    return FakeBucketBackend(BASE_URL)


@pytest.fixture
def json_backend() -> FakeBucketBackend:
    return FakeBucketBackend(f"{BASE_URL}/api", listing_mode="json")


@pytest.fixture
def bridge(cloud_config, backend) -> CloudStorageBridge:
    return CloudStorageBridge(
        cloud_config, transport=HttpTransport(cloud_config, session_factory=backend.session)
    )


@pytest.fixture
def json_bridge(json_config, json_backend) -> JsonBridge:
    return JsonBridge(
        json_config, transport=HttpTransport(json_config, session_factory=json_backend.session)
    )
