"""Structured log field names shared by every Bookkeeper component."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Envelope correlation.
TRACE_ID = "trace_id"
ENVELOPE_ID = "envelope_id"
PRINCIPAL = "principal"

# Public API invocation.
COMPONENT_ID = "component_id"
API_NAME = "api_name"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"

# Event flow.
ROUTING_KEY = "routing_key"
EVENT_TYPE = "event_type"
SUBJECT_TYPE = "subject_type"
SUBJECT_IDS = "subject_ids"
QUEUE = "queue"
CONSUMER = "consumer"
ENTRY_ID = "entry_id"
DELIVERY_COUNT = "delivery_count"

# Process identity.
SERVICE = "service"
ENVIRONMENT = "environment"
