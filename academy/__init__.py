"""
Academy Service - Backend for the chess academy website

Responsibilities:
- Tournament records (CRUD) with poster images in cloud storage
- Calendar-driven tournament status and administrator lifecycle actions
- Public listings: currently listed tournaments and past winners
- Admin listing with search, filtering and pagination
"""
