# API request/response schemas
