from prometheus_client import Counter

REQUEST_COUNTER = Counter("image_upload_requests_total", "Total API requests", ["path"])
UPLOAD_COUNTER = Counter("image_upload_uploads_total", "Upload outcomes", ["outcome"])
