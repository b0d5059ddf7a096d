from prometheus_client import CollectorRegistry, Counter, Histogram

# Scraped via /metrics in the API process
registry = CollectorRegistry()

REQUESTS = Counter('api_requests_total', 'API Requests', ['endpoint', 'status'], registry=registry)
LATENCY = Histogram('api_request_latency_seconds', 'API request latency', ['endpoint'], registry=registry, buckets=(0.01,0.05,0.1,0.25,0.5,1,2,5,10))
EVENTS_INGESTED = Counter('ingest_events_persisted_total', 'Activity events persisted', ['action'], registry=registry)
INGEST_REJECTED = Counter('ingest_events_rejected_total', 'Ingestion requests rejected', ['error_code'], registry=registry)
GENERATIONS = Counter('text_generations_total', 'Narrative/answer generations by path taken', ['kind', 'source'], registry=registry)
AI_LATENCY = Histogram('ai_backend_latency_seconds', 'Generative backend call latency', ['kind'], registry=registry, buckets=(0.1,0.25,0.5,1,2,5,10,30,60))
REGENERATIONS = Counter('story_regenerations_total', 'Background story regenerations', ['outcome'], registry=registry)
TRACKING_FAILURES = Counter('api_call_tracking_failures_total', 'Call-tracking writes that failed', ['call_type'], registry=registry)
