# use in gunicorn as: gunicorn filevault.api:app -c gunicorn.conf.py
# run the thumbnail worker separately: python -m filevault worker

# Workers
workers = 4
worker_class = "uvicorn.workers.UvicornWorker"

# Socket
bind = "0.0.0.0:5000"

# Logging
# loglevel = "debug"
# accesslog = "/tmp/filevault_access_log"
# errorlog = "/tmp/filevault_error_log"
