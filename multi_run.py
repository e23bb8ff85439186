# multi_run.py
from bouncesim.collision import Bounds
from bouncesim.logging_config import setup_logging
from bouncesim.multi import run_multi_parallel

if __name__ == "__main__":
    setup_logging()

    bounds = Bounds(floor=0, ceiling=400, left=0, right=600)
    elasticities = [1.0, 0.9, 0.8, 0.7, 0.6, 0.5, 0.4, 0.3]

    # Run all sims in parallel, headless
    results = run_multi_parallel(elasticities, (0, 0), (30, 90), bounds=bounds, duration=20.0)

    # Print a per-elasticity summary
    for e, data in results.items():
        final = data["log"][-1]
        print(f"e={e:.2f} -> bounces={data['bounces']} final TE={final['TE']:.1f}")
