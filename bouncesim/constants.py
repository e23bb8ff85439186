"""Core simulation constants.

These defaults are shared across headless and interactive runs.
"""

G = 9.81                  # Gravity (m/s^2), acts on vertical velocity only
MASS = 1                  # Projectile mass (kg)
TICKS_PER_SECOND = 24     # Fixed integration cadence
DT = 1 / TICKS_PER_SECOND # Fixed physics timestep (s)

# Arena bounds, same length unit as position
FLOOR = 0.0
CEILING = 400.0
LEFT_WALL = 0.0
RIGHT_WALL = 600.0

DEFAULT_ELASTICITY = 1.0  # 1 = lossless bounce, 0 = velocity killed on impact
LAUNCH_POSITION = (0.0, 0.0)
LAUNCH_VELOCITY = (30.0, 90.0)

RADIUS = 50               # Ball radius in pixels
WINDOW_SIZE = (1500, 900) # Canvas size in pixels
ELASTICITY_STEP = 5       # Percent change per key press
