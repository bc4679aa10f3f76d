"""Service layer between routes and the job pipeline."""
