"""
handlers/ - Presentation Layer
================================
Telegram bot handlers. Each handler parses the owner's command, delegates
to the appropriate Service, and sends the response back.
No schedule rules live here.
"""
