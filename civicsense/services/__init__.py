"""
Services layer - business logic lives here, NOT in routes.

Each service is a class with a module-level singleton getter
(e.g. get_report_service()). Services raise domain exceptions from
civicsense.core.exceptions; routes translate them into HTTP responses.
"""
