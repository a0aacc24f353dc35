"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
for root in (REPO_ROOT, SRC_ROOT):
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


# Complete test environment so a developer's shell or .env cannot leak in
TEST_ENV = {
    "SPEC_SEARCH_MAX_MATCHES_PER_SPEC": "5",
    "SPEC_SEARCH_CONTEXT_LENGTH": "80",
    "SPEC_SEARCH_MATCH_MODE": "all",
    "SPEC_SEARCH_SMART_CONTEXT": "true",
    "SPEC_SEARCH_LOG_LEVEL": "info",
    "SPEC_SEARCH_LOG_JSON": "true",
    "SPEC_SEARCH_SERVICE_NAME": "spec-search-test",
    "SPEC_SEARCH_TRACING_ENABLED": "false",
    "SPEC_SEARCH_METRICS_ENABLED": "true",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value

from spec_search.domain.search import Document


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset search settings to test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def sample_specs() -> list[Document]:
    """Small spec corpus covering every searchable field."""
    return [
        Document(
            path="042-oauth2-implementation",
            name="042-oauth2-implementation",
            status="in-progress",
            priority="high",
            tags=["api", "security", "auth"],
            title="OAuth2 Authentication Flow",
            description="Implement OAuth2 authentication with token refresh",
            content=(
                "## Overview\n"
                "This spec describes the complete authentication flow including token refresh.\n"
                "The OAuth2 flow supports authorization code grant with PKCE.\n"
                "\n"
                "## Implementation\n"
                "- Token generation\n"
                "- Refresh token handling\n"
                "- Session management"
            ),
        ),
        Document(
            path="038-jwt-token-service",
            name="038-jwt-token-service",
            status="complete",
            priority="medium",
            tags=["api", "auth"],
            title="JWT Token Service",
            description="JWT-based authentication service",
            content=(
                "## Overview\n"
                "JWT authentication flow with RS256 signing.\n"
                "Provides token validation and refresh capabilities."
            ),
        ),
        Document(
            path="051-user-session-management",
            name="051-user-session-management",
            status="planned",
            priority="medium",
            tags=["api", "users"],
            title="User Session Management",
            description="Handle user sessions and authentication state",
            content=(
                "## Overview\n"
                "Manage user sessions across multiple devices.\n"
                "Support for session expiration and renewal."
            ),
        ),
        Document(
            path="025-api-rate-limiting",
            name="025-api-rate-limiting",
            status="complete",
            priority="high",
            tags=["api", "security"],
            title="API Rate Limiting",
            description="Rate limiting for API endpoints",
            content="## Overview\nImplement rate limiting to prevent abuse.\nUses token bucket algorithm.",
        ),
    ]

