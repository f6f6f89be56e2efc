"""Order Form OCR.

Turns a photographed carpet/rug sales-order form into a structured order
record using OpenCV preprocessing, region-based Tesseract OCR, and
label-anchored parsing with OCR error correction.
"""
