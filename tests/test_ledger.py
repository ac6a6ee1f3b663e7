from campusbus.bookings.ledger import SeatLedger


def test_lowest_free_seat_fills_gaps():
    ledger = SeatLedger(4, {1, 3})
    assert ledger.find_lowest_free_seat() == 2
    assert ledger.free_count() == 2
    assert not ledger.is_full()


def test_full_ledger_has_no_free_seat():
    ledger = SeatLedger(4, [1, 2, 3, 4])
    assert ledger.find_lowest_free_seat() is None
    assert ledger.is_full()
    assert ledger.free_count() == 0


def test_seat_bounds():
    ledger = SeatLedger(40, [5])
    assert ledger.is_seat_free(1)
    assert ledger.is_seat_free(40)
    assert not ledger.is_seat_free(5)
    assert not ledger.is_seat_free(0)
    assert not ledger.is_seat_free(41)


def test_seat_map_layout():
    seats = SeatLedger(6, [2, 5]).seat_map()

    assert [seat["number"] for seat in seats] == [1, 2, 3, 4, 5, 6]
    assert seats[0]["id"] == "1-1"
    assert seats[3]["id"] == "1-4"
    assert seats[4]["id"] == "2-1"
    assert seats[4]["row"] == 2
    assert [seat["status"] for seat in seats] == [
        "available", "booked", "available", "available", "booked", "available"
    ]
