"""
E-Learning Users Package - DSP (Digital Solutions Platform)

Dieses Paket enthält das Benutzerprofil mit Plattform-Rolle
(Student, Trainer, Administrator) sowie die rollenbasierten
Zugriffsprüfungen für die Einschreibungs-API.

Author: DSP Development Team
Created: 10.07.2025
Version: 1.1.0
"""
