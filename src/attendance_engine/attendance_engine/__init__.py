"""Attendance Engine package.

This package is organized by feature modules (geo, timing, penalties,
approvals, attendance, ...) with a thin Flask controller layer and
service/repository layers around a pure evaluation core.
"""
