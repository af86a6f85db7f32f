"""
Environments Module - External Service Integrations

environments/
├── base.py      # Error taxonomy and provider/service base classes
└── google/      # Google OAuth + Calendar
"""
