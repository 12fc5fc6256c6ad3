"""
E-Learning Enrollments Package - DSP (Digital Solutions Platform)

Einschreibungen nach erfolgreicher Zahlung, Trainer-Zuweisung und
Fortschrittsverfolgung.

Struktur:
- models.py: Enrollment inkl. Status-Maschine und Eindeutigkeits-Constraint
- services/: Einschreibungs-Workflow, Trainer-Zuweisung, Fortschritt
- views.py / urls.py: REST-Endpunkte

Author: DSP Development Team
Version: 1.0.0
"""
