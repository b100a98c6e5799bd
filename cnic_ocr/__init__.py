"""CNIC OCR extraction service.

Conditions identity card photos, reads them with the OCR.space API,
and turns the recognized text into a validated record of card fields.
"""
