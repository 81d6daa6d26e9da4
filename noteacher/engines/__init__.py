"""
Domain engines: course loading, the progress/unlock engine and node discussions.
"""
