# =============================================================================
# lib/ - External Service Clients
# =============================================================================
# - supabase_client.py: Property store on top of the Supabase `properties` table
# - weather_client.py: Weatherstack lookup with retries and error triage
# =============================================================================
