"""
Roundtable Core Module
Plot lifecycle, readiness detection and prompt/response handling.
"""
