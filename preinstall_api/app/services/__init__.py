"""
Service layer abstraction.

Services hold the business rules for submissions and receive the
``SubmissionStore`` they operate on from the API dependencies.
"""
