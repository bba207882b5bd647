"""
Contact App

Handles the portfolio contact form:
- Public contact form submission with rate limiting and a honeypot field
- Operator notification email through Resend
- Bearer-token protected listing of stored messages
"""
