"""
APK build pipeline: repository → web assets → Capacitor → Android APK
"""
