import os

# GUI tests render offscreen
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
