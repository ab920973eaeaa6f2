"""
Quick demo – evolves small 6x6 brains for 30 epochs in 40x40 worlds
and saves the chart, best trail and brain image without needing a display.
"""
from config import GeneticWorldParams
from fitness_driver import GeneticFitnessDriver
from visualizer import (ensure_dirs, save_world_snapshot,
                        save_evolution_chart, save_neural_diagram, append_csv)

OUT = "output/demo"
ensure_dirs(OUT)

params = GeneticWorldParams(
    brain_size_x       = 6,
    brain_size_y       = 6,
    num_genes          = 30,
    elite_size         = 3,
    num_epochs         = 30,
    world_width        = 40,
    world_height       = 40,
    num_rooms          = 1,
    min_room_size      = 6,
    max_room_size      = 12,
    num_moves_per_test = 50,
    seed               = 42,
)

driver = GeneticFitnessDriver(params)
driver.drive(on_epoch_complete=lambda epoch, stats: append_csv(stats, OUT))

save_evolution_chart(driver.stats, OUT, "demo_chart.png")
save_world_snapshot(driver.worlds[0], driver.epoch, driver.best_trail, OUT, "demo_trail.png")
save_neural_diagram(driver.best_network, driver.epoch, "best", OUT)
print("\nAll outputs in:", OUT)
