from brick_game.tetris.main import main


main()
