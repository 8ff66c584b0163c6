import random
import unittest
import numpy as np
import brick_game.tetris as tetris
from brick_game.tetris import Color, Grid, Piece, Shape


class TestGrid(unittest.TestCase):
    def setUp(self):
        self.g1 = Grid.by_size((6, 5))
        self.form = tetris.gen_form([
            [0, 1, 0],
            [1, 1, 1],
        ])

    def test_size(self):
        g1 = self.g1
        self.assertEqual(6, g1.width())
        self.assertEqual(5, g1.height())
        self.assertTrue(g1.is_empty())

    def test_get_cell(self):
        g1 = self.g1
        g1.set_cell((2, 4), Color.Red)
        self.assertTrue(g1.can_get_cell((0, 0)))
        self.assertTrue(g1.can_get_cell((5, 4)))
        self.assertFalse(g1.can_get_cell((-1, 0)))
        self.assertFalse(g1.can_get_cell((0, -1)))
        self.assertFalse(g1.can_get_cell((6, 0)))
        self.assertFalse(g1.can_get_cell((0, 5)))
        self.assertEqual(Color.Red, g1.get_cell((2, 4)))
        self.assertEqual(Color.Empty, g1.get_cell((2, 3)))
        self.assertEqual(None, g1.get_cell((6, 4)))

    def test_can_put(self):
        g1, form = self.g1, self.form
        self.assertTrue(g1.can_put((0, 0), form))
        self.assertTrue(g1.can_put((3, 3), form))
        self.assertFalse(g1.can_put((-1, 0), form))
        self.assertFalse(g1.can_put((4, 0), form))
        self.assertFalse(g1.can_put((0, 4), form))
        # rows above the top edge never collide
        self.assertTrue(g1.can_put((0, -1), form))
        self.assertTrue(g1.can_put((0, -10), form))

        g1.set_cell((1, 1), Color.Blue)
        self.assertFalse(g1.can_put((0, 0), form))
        self.assertTrue(g1.can_put((0, 2), form))

    def test_put(self):
        g1, form = self.g1, self.form
        g1.put((0, -1), form, Color.Green)
        self.assertEqual(Color.Green, g1.get_cell((0, 0)))
        self.assertEqual(Color.Green, g1.get_cell((1, 0)))
        self.assertEqual(Color.Green, g1.get_cell((2, 0)))
        self.assertEqual(3, np.count_nonzero(g1.cells))

    def test_drop_filled_rows(self):
        g1 = self.g1
        g1.set_cell((0, 3), Color.Magenta)
        for x in range(g1.width()):
            g1.set_cell((x, 4), Color.Yellow)
        self.assertEqual(1, g1.drop_filled_rows())
        self.assertEqual(Grid.by_cells([
            [0, 0, 0, 0, 0, 0],
            [0, 0, 0, 0, 0, 0],
            [0, 0, 0, 0, 0, 0],
            [0, 0, 0, 0, 0, 0],
            [2, 0, 0, 0, 0, 0],
        ]), g1)

    def test_drop_non_adjacent_filled_rows(self):
        g1 = self.g1
        for y in range(g1.height()):
            g1.set_cell((0, y), Color(5 - y))
        for x in range(g1.width()):
            g1.set_cell((x, 1), Color.Yellow)
            g1.set_cell((x, 3), Color.Yellow)
        self.assertEqual(2, g1.drop_filled_rows())
        self.assertEqual(Grid.by_cells([
            [0, 0, 0, 0, 0, 0],
            [0, 0, 0, 0, 0, 0],
            [5, 0, 0, 0, 0, 0],
            [3, 0, 0, 0, 0, 0],
            [1, 0, 0, 0, 0, 0],
        ]), g1)

    def test_drop_adjacent_filled_rows(self):
        g1 = self.g1
        g1.set_cell((3, 2), Color.Cyan)
        g1.cells[3:5] = Color.White
        self.assertEqual(2, g1.drop_filled_rows())
        self.assertEqual(Color.Cyan, g1.get_cell((3, 4)))
        self.assertEqual(1, np.count_nonzero(g1.cells))

    def test_drop_all_filled_rows(self):
        g1 = self.g1
        g1.cells[:] = Color.Red
        self.assertEqual(5, g1.drop_filled_rows())
        self.assertTrue(g1.is_empty())

    def test_clear(self):
        g1 = self.g1
        g1.cells[2] = Color.Red
        g1.clear()
        self.assertTrue(g1.is_empty())


class TestShape(unittest.TestCase):
    def test_forms(self):
        for shape in Shape:
            form = shape.form()
            self.assertEqual((4, 4), form.shape)
            self.assertEqual(4, np.count_nonzero(form), str(shape))

    def test_form_is_a_copy(self):
        form = Shape.T.form()
        form[:] = 0
        self.assertEqual(4, np.count_nonzero(Shape.T.form()))

    def test_rotation_changes_all_but_o(self):
        for shape in Shape:
            form = shape.form()
            rotated = tetris.rotate_form(form, shape)
            self.assertEqual(4, np.count_nonzero(rotated))
            if shape is Shape.O:
                self.assertTrue(np.array_equal(form, rotated))
            else:
                self.assertFalse(np.array_equal(form, rotated), str(shape))

    def test_four_rotations_are_identity(self):
        for shape in Shape:
            form = shape.form()
            rotated = form
            for _ in range(4):
                rotated = tetris.rotate_form(rotated, shape)
            self.assertTrue(np.array_equal(form, rotated), str(shape))

    def test_rotation_block(self):
        form = Shape.L.form()
        rotated = tetris.rotate_form(form, Shape.L)
        for y in range(3):
            for x in range(3):
                self.assertEqual(form[2 - y][x], rotated[x][y])

        rotated = tetris.rotate_form(Shape.I.form(), Shape.I)
        self.assertTrue(np.array_equal(tetris.gen_form([
            [0, 0, 1, 0],
            [0, 0, 1, 0],
            [0, 0, 1, 0],
            [0, 0, 1, 0],
        ]), rotated))

    def test_random(self):
        rand = random.Random(0)
        for _ in range(100):
            self.assertIn(Shape.random(rand), list(Shape))
            color = Color.random(rand)
            self.assertGreaterEqual(color, 1)
            self.assertLessEqual(color, 7)


class TestPiece(unittest.TestCase):
    def setUp(self):
        self.grid = Grid.by_size((10, 20))

    def test_collides_at_edges(self):
        grid = self.grid
        # horizontal I occupies the second row of its form
        p = Piece(Shape.I, Color.Cyan, (0, 0))
        self.assertFalse(p.collides(grid))
        self.assertTrue(p.collides(grid, -1, 0))
        p.pos = (6, 0)
        self.assertFalse(p.collides(grid))
        self.assertTrue(p.collides(grid, 1, 0))
        p.pos = (3, 18)
        self.assertFalse(p.collides(grid))
        self.assertTrue(p.collides(grid, 0, 1))
        self.assertFalse(p.collides(grid, 0, -30))
        self.assertTrue(p.collides(grid, 100, 100))

    def test_collides_with_cells(self):
        grid = self.grid
        grid.cells[0, 3:6] = Color.White
        p = Piece(Shape.T, Color.Red, (3, -2))
        self.assertFalse(p.collides(grid))
        self.assertTrue(p.collides(grid, 0, 1))
        self.assertEqual([(4, -2), (3, -1), (4, -1), (5, -1)],
                         sorted(tetris.occupied_cells(p.form, p.pos), key=lambda c: (c[1], c[0])))

    def test_shift(self):
        grid = self.grid
        p = Piece(Shape.O, Color.Yellow, (-1, 0))
        self.assertFalse(p.shift(grid, -1, 0))
        self.assertEqual((-1, 0), p.pos)
        self.assertTrue(p.shift(grid, 1, 0))
        self.assertEqual((0, 0), p.pos)
        self.assertTrue(p.shift(grid, 0, 1))
        self.assertEqual((0, 1), p.pos)

    def test_rotate(self):
        grid = self.grid
        p = Piece(Shape.T, Color.Red, (4, 5))
        expected = tetris.rotate_form(p.form, Shape.T)
        self.assertTrue(p.rotate(grid))
        self.assertEqual((4, 5), p.pos)
        self.assertTrue(np.array_equal(expected, p.form))

    def test_rotate_o(self):
        p = Piece(Shape.O, Color.Yellow, (4, 5))
        form = p.form.copy()
        self.assertTrue(p.rotate(self.grid))
        self.assertTrue(np.array_equal(form, p.form))

    def test_rotate_kicks_left(self):
        vertical = tetris.rotate_form(Shape.I.form(), Shape.I)
        p = Piece(Shape.I, Color.Cyan, (7, 10), vertical)
        self.assertFalse(p.collides(self.grid))
        self.assertTrue(p.rotate(self.grid))
        self.assertEqual((6, 10), p.pos)
        self.assertTrue(np.array_equal(
            tetris.rotate_form(vertical, Shape.I), p.form))

    def test_rotate_kicks_right(self):
        t_right = tetris.rotate_form(Shape.T.form(), Shape.T)
        p = Piece(Shape.T, Color.Red, (-1, 5), t_right)
        self.assertFalse(p.collides(self.grid))
        self.assertTrue(p.rotate(self.grid))
        self.assertEqual((0, 5), p.pos)
        self.assertTrue(np.array_equal(
            tetris.rotate_form(t_right, Shape.T), p.form))

    def test_rotate_rejected(self):
        grid = self.grid
        grid.cells[12, 0:9] = Color.White
        vertical = tetris.rotate_form(Shape.I.form(), Shape.I)
        p = Piece(Shape.I, Color.Cyan, (7, 10), vertical.copy())
        self.assertFalse(p.collides(grid))
        self.assertFalse(p.rotate(grid))
        self.assertEqual((7, 10), p.pos)
        self.assertTrue(np.array_equal(vertical, p.form))

    def test_merge_into(self):
        grid = self.grid
        p = Piece(Shape.I, Color.Cyan, (6, 18))
        p.merge_into(grid)
        self.assertEqual([Color.Cyan] * 4, list(grid.cells[19, 6:10]))
        self.assertEqual(4, np.count_nonzero(grid.cells))


class TestPieceGenerator(unittest.TestCase):
    def test_generate(self):
        gen = tetris.PieceGenerator(random.Random(7))
        for _ in range(50):
            p = gen.generate()
            self.assertIn(p.shape, list(Shape))
            self.assertIn(p.color, range(1, 8))
            self.assertTrue(np.array_equal(p.shape.form(), p.form))

    def test_seeded(self):
        gen1 = tetris.PieceGenerator(random.Random(3))
        gen2 = tetris.PieceGenerator(random.Random(3))
        for _ in range(20):
            p1, p2 = gen1.generate(), gen2.generate()
            self.assertEqual((p1.shape, p1.color), (p2.shape, p2.color))


class TestScore(unittest.TestCase):
    def test_score_for(self):
        self.assertEqual(0, tetris.score_for(0))
        self.assertEqual(100, tetris.score_for(1))
        self.assertEqual(300, tetris.score_for(2))
        self.assertEqual(700, tetris.score_for(3))
        self.assertEqual(1500, tetris.score_for(4))
        self.assertEqual(0, tetris.score_for(5))
        self.assertEqual(0, tetris.score_for(-1))

    def test_level_and_speed(self):
        cases = [
            (0, 1, 20),
            (599, 1, 20),
            (600, 2, 18),
            (6000, 10, 2),
            (100000, 10, 2),
        ]
        for score, level, speed in cases:
            self.assertEqual(level, tetris.level_for(score), score)
            self.assertEqual(speed, tetris.speed_for(level), score)


if __name__ == '__main__':
    unittest.main()
