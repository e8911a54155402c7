#!/usr/bin/env python3
"""
模拟脚本

Usage:
    python scripts/simulate.py --players 3 --games 100
    python scripts/simulate.py --players 2 --agent rule --seed 7 --output results.json
    python scripts/simulate.py --players 1 --show-game
"""
import argparse
import logging
import sys
from pathlib import Path
import json

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core import GameConfig, QwintoGame, ConfigError
from evaluation import Evaluator, RandomAgent, RuleBasedAgent

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Qwinto Simulation")

    # 游戏参数
    parser.add_argument("--players", type=int, default=1, help="Number of players")
    parser.add_argument("--max-dice-rolls", type=int, default=2, help="Rolls per turn")
    parser.add_argument(
        "--allow-row-gaps",
        action="store_true",
        help="Allow empty cells to the left of a placement",
    )

    # 模拟参数
    parser.add_argument("--games", type=int, default=100, help="Number of games")
    parser.add_argument(
        "--agent",
        type=str,
        default="random",
        choices=["random", "rule"],
        help="Agent type for every seat",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")

    # 其他
    parser.add_argument("--show-game", action="store_true", help="Print the final board of one game")
    parser.add_argument("--output", type=str, help="Output file for results")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    return parser.parse_args()


def build_agents(args, num_players: int):
    """为每个座位创建智能体"""
    if args.agent == "rule":
        return [RuleBasedAgent(f"rule{i}") for i in range(num_players)]
    seed = args.seed
    return [
        RandomAgent(f"random{i}", seed=None if seed is None else seed + i)
        for i in range(num_players)
    ]


def main():
    args = parse_args()

    try:
        config = GameConfig(
            num_players=args.players,
            max_dice_rolls=args.max_dice_rolls,
            allow_row_gaps=args.allow_row_gaps,
        )
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    game = QwintoGame(config)
    agents = build_agents(args, game.num_players)
    evaluator = Evaluator(game_fn=lambda: game, seed=args.seed)

    logger.info(f"Simulating {args.games} games: {game}, agent={args.agent}")

    if args.show_game:
        state = evaluator.play_game(game, agents)
        print(state)
        logger.info(f"Final scores: {state.player_scores()}")

    result = evaluator.evaluate(agents, n_games=args.games, verbose=args.verbose)

    logger.info("=" * 50)
    logger.info("Simulation Results")
    logger.info("=" * 50)
    for player, (avg, win_rate) in enumerate(zip(result.avg_returns, result.win_rates)):
        logger.info(f"Player {player}: avg score {avg:.2f}, win rate {win_rate:.2%}")
    logger.info(f"Best score: {result.max_return:.0f}")
    logger.info(f"Worst score: {result.min_return:.0f}")
    logger.info(f"Average Length: {result.avg_length:.1f}")
    if result.truncated_games:
        logger.warning(f"{result.truncated_games} games hit the step limit")
    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({"config": config.to_dict(), **result.to_dict()}, f, indent=2)
        logger.info(f"Results saved to {args.output}")

    return result


if __name__ == "__main__":
    main()
