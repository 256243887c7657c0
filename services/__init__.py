"""Application services for reservations and WhatsApp messaging."""
