"""Tools behind the HTTP boundary: TSV export, OTP generation, and the bulk upload session."""
