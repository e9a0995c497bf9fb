# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Property Weather API:
# - test_validation.py: Field rules and address composition
# - test_weather_client.py: Retry schedule and failure triage
# - test_property_service.py: Creation pipeline and query/delete path
# - test_supabase_client.py: Store queries against a mocked Supabase client
# - test_api.py: REST endpoints, error mapping, health and rate limiting
# - test_models.py / test_config.py: Schemas and settings
# - test_rate_limit.py: Fixed-window limiter and client identification
#
# Run tests with: pytest
# =============================================================================
