import os

bind = f"0.0.0.0:{os.getenv('PORT', '5000')}"
# Sessions live in process memory unless REDIS_URL is set; more than one
# worker would give each its own copy and users would lose their mode.
workers = int(os.getenv('WEB_CONCURRENCY', '1'))
threads = int(os.getenv('GUNICORN_THREADS', '4'))
# Pro-tier model calls on long audio can take well over 30s.
timeout = 120
accesslog = '-'  # stdout
errorlog = '-'   # stderr
