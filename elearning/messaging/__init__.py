"""
E-Learning Messaging Package - DSP (Digital Solutions Platform)

Systembenachrichtigungen (persistierte Nachrichten) und Echtzeit-Push an
verbundene Clients. Der Push erfolgt best-effort über eine injizierbare
Verbindungs-Registry; fehlende Verbindungen werden still toleriert.

Author: DSP Development Team
Version: 1.0.0
"""
