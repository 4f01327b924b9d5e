# Web integration for FastAPI applications
