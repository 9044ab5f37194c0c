# constants.py

"""
Application Constants

This module defines static configuration values for the application's framework.
These are not expected to change between runs; per-run values live in config.json.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
- Palette colours are 0xRRGGBB integers; pygame colours are (R, G, B) tuples.
"""

# Screen dimensions (initial window size, the window is resizable)
WIDTH = 1600  # Pixels
HEIGHT = 900  # Pixels

# Framerate
FPS = 60  # Frames per second

# Upper bound on a single frame's delta. A stalled frame (window drag, debugger)
# would otherwise teleport every particle.
MAX_FRAME_DELTA = 0.1  # Seconds

# Window Title
TITLE = "Ambient Scene"

# Sky background, drawn before any scene
SKY_TOP = 0x0B0B1A       # Deep night

# Snow
SNOW_WHITE = 0xF0F8FF    # Slightly blue-white

# Sparkles
STAR_GOLD = 0xFFF3BF
STAR_WHITE = 0xFFFFFF
LIGHT_GOLD = 0xFFD93D
MISTY_ROSE = 0xFFE4E1
LAVENDER = 0xE6E6FA
SPARKLE_COLORS = [STAR_GOLD, STAR_WHITE, LIGHT_GOLD, MISTY_ROSE, LAVENDER]

# Aurora bands cycle through this palette
AURORA_COLORS = [0x4FFFB0, 0x2DD4BF, 0x22D3EE, 0xA78BFA, 0xF472B6]

# Global wind
WIND_CHANGE_INTERVAL = 3.0  # Seconds between new wind targets
WIND_BLEND_RATE = 0.5       # Fraction of the gap closed per second

# Noise sampling offsets are drawn from [0, NOISE_OFFSET_RANGE)
NOISE_OFFSET_RANGE = 10000.0
