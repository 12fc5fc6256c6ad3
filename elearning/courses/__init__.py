"""
E-Learning Courses Package - DSP (Digital Solutions Platform)

Kurse mit ihrer Stufen-Vorlage (Stages) und den buchbaren Preisoptionen.
Die Stufen werden bei der Einschreibung in die Enrollment kopiert.

Author: DSP Development Team
Version: 1.0.0
"""
