import os

bind = f"0.0.0.0:{os.getenv('PORT', '3000')}"

# Low, safe defaults for small containers; override via env if needed
workers = int(os.getenv("WEB_CONCURRENCY", "2"))
threads = int(os.getenv("WEB_THREADS", "4"))
worker_class = os.getenv("WORKER_CLASS", "gthread")
preload_app = False

# Photo uploads of up to 5 x 25MB need more than the default 30s on slow links
timeout = int(os.getenv("WEB_TIMEOUT", "120"))
keepalive = 2
max_requests = int(os.getenv("MAX_REQUESTS", "500"))
max_requests_jitter = int(os.getenv("MAX_REQUESTS_JITTER", "50"))

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
