"""
Asynchronous thumbnail generation.

The upload path hands a job to the ThumbnailProducer and returns immediately; a separate
worker process (python -m filevault worker) runs the ThumbnailConsumer, which feeds each
job to a ThumbnailWorker that writes the resized variants next to the original blob.
"""
