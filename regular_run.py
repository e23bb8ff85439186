from bouncesim.single import run_sim
from bouncesim.logging_config import setup_logging

# Interactive session: launch from the floor, bounce inside the default arena.
# Elasticity and "persist path" come from the saved preferences.

setup_logging()

result = run_sim(initial_position=(0, 0), initial_velocity=(30, 90), display=True)

# Print a short summary once the window closes
print(f"ticks={len(result.physics_log)} bounces={result.bounces} t={result.elapsed:.2f} s")
