"""School Roster package.

Organized by feature modules (roster, promotion, credentials, attendance,
transport) with a thin Flask controller layer over service/repository layers.
"""
