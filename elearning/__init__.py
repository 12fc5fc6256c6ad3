"""
E-Learning Package - DSP (Digital Solutions Platform)

Dieses Paket enthält alle Module für Kursbuchung und Trainingsbetreuung.
Ermöglicht die Einschreibung nach erfolgreicher Zahlung, die Zuweisung
von Trainern sowie Benachrichtigungen an Studierende und Trainer.

Struktur:
- users/: Benutzerprofile, Rollen und Zugriffsprüfungen
- courses/: Kurse, Stufen-Vorlagen und Preisoptionen
- enrollments/: Einschreibungen, Trainer-Zuweisung, Fortschritt
- messaging/: Systemnachrichten und Echtzeit-Benachrichtigungen

Author: DSP Development Team
Created: 10.07.2025
Version: 1.1.0
"""
