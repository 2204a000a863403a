# ORM models for the persistent store
