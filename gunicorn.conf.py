# Gunicorn configuration file
# Run with: gunicorn -c gunicorn.conf.py production_app:app

# Timeout for workers (in seconds)
# Uploads extract clues synchronously; large exports can take a few seconds
timeout = 60

# Number of worker processes
workers = 2

# Binding
bind = "0.0.0.0:8080"

# Logging (print() output from the app goes to the error log)
accesslog = "-"
errorlog = "-"
loglevel = "info"
capture_output = True
